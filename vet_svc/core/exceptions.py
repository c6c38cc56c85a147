"""
Shared exception classes and error handling utilities for the Vet Clinic
Record Service.

This module provides:
- Custom exception hierarchy for storage and domain errors
- Consistent error response formatting (``{"success": false, "error": ...}``)
- Exception handlers for FastAPI integration

Usage:
    from core.exceptions import PatientNotFoundError, DuplicatePatientError

    # In adapters - translate driver errors
    raise DuplicatePatientError(patient_id="PET001") from exc

    # In FastAPI - register handlers via setup_exception_handlers(app)
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Error interno del servidor"


# =============================================================================
# BASE EXCEPTION CLASSES
# =============================================================================

class VetServiceError(Exception):
    """
    Base exception for all Vet Clinic Record Service errors.

    All custom exceptions should inherit from this class.
    Provides consistent error structure with status code and detail message.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ):
        """
        Initialize the exception.

        Args:
            detail: Human-readable error message. Uses class default if not provided.
            status_code: HTTP status code. Uses class default if not provided.
            **kwargs: Additional context, logged but never sent to the client.
        """
        self.detail = detail or self.__class__.detail
        self.status_code = status_code or self.__class__.status_code
        self.context = kwargs
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the error envelope returned to clients."""
        return {"success": False, "error": self.detail}


class ValidationError(VetServiceError):
    """Raised when a required field is missing or malformed."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    detail = "Invalid record data"


class NotFoundError(VetServiceError):
    """Raised when the target of an operation does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Record not found"


class DuplicateKeyError(VetServiceError):
    """Raised when a strict insert collides with an existing business key."""

    status_code = status.HTTP_409_CONFLICT
    detail = "Record already exists"


class StorageError(VetServiceError):
    """Raised when a store operation fails for a reason other than the above."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Storage operation failed"

    def __init__(self, operation: Optional[str] = None, **kwargs: Any):
        detail = f"Storage error during {operation}" if operation else self.detail
        super().__init__(detail=detail, operation=operation, **kwargs)


class ConnectionUnavailableError(VetServiceError):
    """Raised when the active store cannot be reached."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "Storage backend unavailable"

    def __init__(self, backend: Optional[str] = None, **kwargs: Any):
        detail = f"Storage backend '{backend}' unavailable" if backend else self.detail
        super().__init__(detail=detail, backend=backend, **kwargs)


# =============================================================================
# PATIENT EXCEPTIONS
# =============================================================================

class PatientNotFoundError(NotFoundError):
    """Raised when a patient is not found in the store."""

    detail = "Paciente no encontrado"

    def __init__(self, patient_id: Optional[str] = None, **kwargs: Any):
        detail = f"Paciente '{patient_id}' no encontrado" if patient_id else self.detail
        super().__init__(detail=detail, patient_id=patient_id, **kwargs)


class DuplicatePatientError(DuplicateKeyError):
    """Raised when creating a patient whose id already exists."""

    detail = "ID ya existe"

    def __init__(self, patient_id: Optional[str] = None, **kwargs: Any):
        detail = f"ID '{patient_id}' ya existe" if patient_id else self.detail
        super().__init__(detail=detail, patient_id=patient_id, **kwargs)


# =============================================================================
# CONSULTATION EXCEPTIONS
# =============================================================================

class DuplicateConsultationError(DuplicateKeyError):
    """Raised when creating a consultation whose id already exists."""

    detail = "Consulta ya existe"

    def __init__(self, consultation_id: Optional[str] = None, **kwargs: Any):
        detail = f"Consulta '{consultation_id}' ya existe" if consultation_id else self.detail
        super().__init__(detail=detail, consultation_id=consultation_id, **kwargs)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def vet_service_exception_handler(
    request: Request,
    exc: VetServiceError
) -> JSONResponse:
    """
    Handle VetServiceError exceptions and return consistent JSON responses.

    Only the human-readable message reaches the client; driver details stay
    in the logs.
    """
    request.state.error_type = type(exc).__name__
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"VetServiceError: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "context": exc.context,
            "cause": repr(exc.__cause__) if exc.__cause__ else None,
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def request_validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Render pydantic request errors with the same envelope as ValidationError."""
    request.state.error_type = type(exc).__name__
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))

    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "errors": messages}
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, "error": "; ".join(messages) or ValidationError.detail}
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle anything outside the VetServiceError hierarchy.

    The traceback goes to the log; the client gets the generic envelope.
    """
    logger.exception(
        f"Unhandled exception: {exc!r}",
        extra={"path": request.url.path, "method": request.method}
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": INTERNAL_ERROR_MESSAGE}
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(VetServiceError, vet_service_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
