"""
Logging setup for the Vet Clinic Record Service.

Every record is stamped with the id of the HTTP request that produced it
and with the storage backend the process was started with, so a log line
from the repository layer can be traced back to its request and told apart
between SQLite and MongoDB deployments.

JSON output (default, one object per line):
{
    "timestamp": "2025-01-15T10:30:00.123Z",
    "level": "WARNING",
    "logger": "core.exceptions",
    "message": "VetServiceError: ID 'PET001' ya existe",
    "request_id": "1f3a9c2e",
    "backend": "document",
    "extra": {"status_code": 409, "context": {"patient_id": "PET001"}}
}

Text output (LOG_FORMAT=text):
    2025-01-15 10:30:00 | WARNING  | 1f3a9c2e | document | core.exceptions | ...
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Copied into the threadpool FastAPI runs sync endpoints in, so storage
# logs emitted there still carry the id.
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def clear_request_id() -> None:
    request_id_var.set(None)


# Attributes every LogRecord carries; anything else came from ``extra=``.
_STANDARD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message", "asctime", "request_id", "backend",
})

# Top-level packages of this service.
APP_LOGGERS = ("main", "api", "core", "repositories", "services")


class RecordContextFilter(logging.Filter):
    """
    Stamp ``request_id`` and ``backend`` onto every record.

    Installed on the handler, so records from uvicorn and pymongo get the
    fields too. A ``backend`` passed through ``extra=`` wins over the
    process-wide one.
    """

    def __init__(self, backend: str = "-"):
        super().__init__()
        self.backend = backend

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        if not getattr(record, "backend", None):
            record.backend = self.backend
        return True


class JSONFormatter(logging.Formatter):
    """Single-line JSON, UTC timestamps with millisecond precision."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            log_entry["request_id"] = request_id
        log_entry["backend"] = getattr(record, "backend", "-")

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        }
        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry, default=str, ensure_ascii=False)


TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(request_id)s | %(backend)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", json_format: bool = True, backend: str = "-") -> logging.Handler:
    """
    Route every logger of the service (and uvicorn) through one stdout handler.

    Args:
        level: Log level name.
        json_format: JSON lines when True, pipe-separated text otherwise.
        backend: Storage backend name stamped on every record.

    Environment Variables:
        LOG_LEVEL: Overrides ``level``.
        LOG_FORMAT: ``json`` or ``text``; overrides ``json_format``.

    Returns:
        The installed handler.
    """
    level = os.environ.get("LOG_LEVEL", level).upper()
    json_format = os.environ.get("LOG_FORMAT", "json" if json_format else "text").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RecordContextFilter(backend))
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for logger_name in APP_LOGGERS + ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(logger_name)
        logger.handlers = []
        logger.propagate = True
    for logger_name in APP_LOGGERS:
        logging.getLogger(logger_name).setLevel(level)

    # pymongo logs heartbeats and pool events at DEBUG
    logging.getLogger("pymongo").setLevel(max(logging.getLevelName(level), logging.INFO))

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"level": level, "format": "json" if json_format else "text"}
    )
    return handler
