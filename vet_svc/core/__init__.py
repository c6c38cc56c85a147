"""
Core module for application configuration, logging, and shared constants.

This module provides:
- Settings: Application configuration via pydantic-settings
- Dependency injection: FastAPI Depends() functions for services and the store
- Exceptions: Domain-specific exception classes with HTTP status codes
- Datetime utilities: UTC-first datetime handling
"""
from core.config import settings, Settings

# Dependency injection - import functions for FastAPI Depends()
from core.dependencies import (
    get_record_store,
    get_record_repository,
    get_patient_service,
    get_consultation_service,
    get_auth_service,
    close_record_store,
    reset_record_store,
)

# Exception classes for consistent error handling
from core.exceptions import (
    VetServiceError,
    ValidationError,
    NotFoundError,
    DuplicateKeyError,
    StorageError,
    ConnectionUnavailableError,
    PatientNotFoundError,
    DuplicatePatientError,
    DuplicateConsultationError,
    setup_exception_handlers,
)

# UTC datetime utilities
from core.datetime_utils import (
    utc_now,
    to_utc,
    parse_datetime,
    parse_date,
    format_iso,
    format_date,
    to_db_string,
    from_db_string,
)
from core.config import (
    # Backwards-compatible exports
    BACKEND_RELATIONAL,
    BACKEND_DOCUMENT,
    DATABASE_PATH,
    API_HOST,
    API_PORT,
    API_RELOAD,
)

__all__ = [
    # Settings
    "settings",
    "Settings",
    # Dependency injection
    "get_record_store",
    "get_record_repository",
    "get_patient_service",
    "get_consultation_service",
    "get_auth_service",
    "close_record_store",
    "reset_record_store",
    # Exceptions
    "VetServiceError",
    "ValidationError",
    "NotFoundError",
    "DuplicateKeyError",
    "StorageError",
    "ConnectionUnavailableError",
    "PatientNotFoundError",
    "DuplicatePatientError",
    "DuplicateConsultationError",
    "setup_exception_handlers",
    # Datetime utilities
    "utc_now",
    "to_utc",
    "parse_datetime",
    "parse_date",
    "format_iso",
    "format_date",
    "to_db_string",
    "from_db_string",
    # Backwards-compatible exports
    "BACKEND_RELATIONAL",
    "BACKEND_DOCUMENT",
    "DATABASE_PATH",
    "API_HOST",
    "API_PORT",
    "API_RELOAD",
]
