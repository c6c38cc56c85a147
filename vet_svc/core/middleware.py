"""
Request logging and in-memory metrics for the Vet Clinic Record Service.

Each request gets a short id (logged and returned as ``X-Request-ID``), its
latency and status are recorded, and failed requests are counted by error
class: the exception handlers put the class name on ``request.state``, so a
409 ``DuplicatePatientError`` and a 503 ``ConnectionUnavailableError`` show
up as separate series.

Middleware order (main.py registers in reverse):
    1. LoggingMiddleware (outermost)
    2. CORSMiddleware
    3. Routers
"""

import logging
import time
import uuid
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.config import settings
from core.logging_config import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


@dataclass
class RequestMetrics:
    """A single finished request."""
    timestamp: datetime
    method: str
    path: str
    status_code: int
    duration_ms: float
    request_id: str
    error_type: Optional[str] = None


@dataclass
class MetricsCollector:
    """
    Counters for every request plus a latency buffer of the last 1000.

    All series carry the ``backend`` label of the store this process serves.
    """
    backend: str = "-"
    _requests: Deque[RequestMetrics] = field(default_factory=lambda: deque(maxlen=1000))

    total_requests: int = 0
    by_status_class: Counter = field(default_factory=Counter)
    by_error_type: Counter = field(default_factory=Counter)

    def record_request(self, metrics: RequestMetrics) -> None:
        self._requests.append(metrics)
        self.total_requests += 1
        self.by_status_class[f"{metrics.status_code // 100}xx"] += 1
        if metrics.error_type:
            self.by_error_type[metrics.error_type] += 1

    def get_latency_percentiles(self) -> Dict[str, float]:
        """Return p50, p95, p99 latencies in milliseconds (0 without data)."""
        if not self._requests:
            return {"p50": 0, "p95": 0, "p99": 0}

        durations = sorted(r.duration_ms for r in self._requests)
        n = len(durations)

        def percentile(p: float) -> float:
            return durations[min(int(n * p / 100), n - 1)]

        return {
            "p50": round(percentile(50), 2),
            "p95": round(percentile(95), 2),
            "p99": round(percentile(99), 2),
        }

    def get_summary(self) -> Dict:
        """Metrics for /metrics/json."""
        latencies = self.get_latency_percentiles()
        return {
            "backend": self.backend,
            "http_requests_total": self.total_requests,
            "http_requests_2xx_total": self.by_status_class["2xx"],
            "http_requests_4xx_total": self.by_status_class["4xx"],
            "http_requests_5xx_total": self.by_status_class["5xx"],
            "http_request_errors_by_type": dict(self.by_error_type),
            "http_request_duration_ms_p50": latencies["p50"],
            "http_request_duration_ms_p95": latencies["p95"],
            "http_request_duration_ms_p99": latencies["p99"],
        }

    def get_prometheus_format(self) -> str:
        """Export metrics in Prometheus text format."""
        backend = f'backend="{self.backend}"'
        latencies = self.get_latency_percentiles()
        lines = [
            "# HELP http_requests_total Total HTTP requests",
            "# TYPE http_requests_total counter",
            f"http_requests_total{{{backend}}} {self.total_requests}",
            "",
            "# HELP http_requests_by_status HTTP requests by status category",
            "# TYPE http_requests_by_status counter",
        ]
        for status_class in ("2xx", "4xx", "5xx"):
            lines.append(
                f'http_requests_by_status{{{backend},status="{status_class}"}} '
                f"{self.by_status_class[status_class]}"
            )
        lines += [
            "",
            "# HELP http_request_errors_total Failed requests by error class",
            "# TYPE http_request_errors_total counter",
        ]
        for error_type, count in sorted(self.by_error_type.items()):
            lines.append(f'http_request_errors_total{{{backend},error="{error_type}"}} {count}')
        lines += [
            "",
            "# HELP http_request_duration_ms Request duration in milliseconds",
            "# TYPE http_request_duration_ms gauge",
        ]
        for quantile, key in (("0.5", "p50"), ("0.95", "p95"), ("0.99", "p99")):
            lines.append(f'http_request_duration_ms{{{backend},quantile="{quantile}"}} {latencies[key]}')
        return "\n".join(lines) + "\n"


metrics_collector = MetricsCollector(backend=settings.backend)


def get_metrics_collector() -> MetricsCollector:
    return metrics_collector


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each request, record its metrics and return its id as X-Request-ID.

    Health, metrics and documentation paths are counted but not logged.
    """

    QUIET_PREFIXES = ("/health", "/ready", "/metrics", "/docs", "/redoc", "/openapi.json")

    def __init__(self, app, collector: Optional[MetricsCollector] = None):
        super().__init__(app)
        self.collector = collector or metrics_collector

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = uuid.uuid4().hex[:8]
        set_request_id(request_id)

        method = request.method
        path = request.url.path
        quiet = path.startswith(self.QUIET_PREFIXES)
        start_time = time.perf_counter()

        if not quiet:
            logger.info(
                "Request started",
                extra={
                    "method": method,
                    "path": path,
                    "query": str(request.query_params) if request.query_params else None,
                }
            )

        try:
            response = await call_next(request)
        except Exception as e:
            # Unhandled errors are rendered by the catch-all handler outside
            # this middleware; count them here before re-raising.
            self.collector.record_request(RequestMetrics(
                timestamp=datetime.now(timezone.utc),
                method=method,
                path=path,
                status_code=500,
                duration_ms=(time.perf_counter() - start_time) * 1000,
                request_id=request_id,
                error_type=type(e).__name__,
            ))
            logger.error(
                "Request failed",
                extra={"method": method, "path": path, "error_type": type(e).__name__}
            )
            clear_request_id()
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        error_type = getattr(request.state, "error_type", None)
        self.collector.record_request(RequestMetrics(
            timestamp=datetime.now(timezone.utc),
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            request_id=request_id,
            error_type=error_type,
        ))

        if not quiet:
            logger.log(
                logging.WARNING if response.status_code >= 400 else logging.INFO,
                "Request completed",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "error_type": error_type,
                    "duration_ms": round(duration_ms, 2),
                }
            )

        clear_request_id()
        response.headers["X-Request-ID"] = request_id
        return response
