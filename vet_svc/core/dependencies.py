"""
FastAPI Dependency Injection configuration for the Vet Clinic Record Service.

Architecture Flow:
    API Layer (Routers)
         ↓ Depends()
    Service Layer (PatientService, ConsultationService, AuthService)
         ↓ Injected
    RecordRepository (storage-agnostic facade)
         ↓ Injected
    RecordStore (SqlRecordStore | MongoRecordStore, chosen from settings.backend)
         ↓ owns
    ConnectionManager (lazy connect, shared by every request)

Usage in Routers:
    from core.dependencies import get_patient_service

    @router.get("/pacientes")
    def list_patients(patient_service: PatientService = Depends(get_patient_service)):
        return patient_service.list_patients()

Testing:
    # Override the store in tests
    app.dependency_overrides[get_record_store] = lambda: test_store
"""
import logging
from typing import Optional

from core.config import settings

logger = logging.getLogger(__name__)


# =============================================================================
# STORE DEPENDENCY
# =============================================================================

# Lazy import to avoid circular dependencies.
# The store is built once per process; it does not connect until first use.
_store_instance: Optional["RecordStore"] = None


def get_record_store() -> "RecordStore":
    """
    Get the process-wide store for the configured backend.

    Returns:
        RecordStore: SqlRecordStore or MongoRecordStore.
    """
    global _store_instance

    if _store_instance is None:
        from repositories import build_record_store

        logger.info("Initializing record store", extra={"backend": settings.backend})
        settings.ensure_directories()
        _store_instance = build_record_store(settings)

    return _store_instance


def close_record_store() -> None:
    """Close the active store's connection, if one was opened."""
    if _store_instance is not None:
        _store_instance.close()


def reset_record_store() -> None:
    """
    Close and forget the store instance (for testing only).
    """
    global _store_instance
    close_record_store()
    _store_instance = None


# =============================================================================
# REPOSITORY DEPENDENCY
# =============================================================================

def get_record_repository() -> "RecordRepository":
    """
    Get a RecordRepository bound to the active store.

    The repository is stateless, so a new one per request is cheap.
    """
    from repositories import RecordRepository

    return RecordRepository(store=get_record_store())


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================

def get_patient_service() -> "PatientService":
    """
    Get a PatientService instance with the repository injected.

    Returns:
        PatientService: Service for patient operations.
    """
    from services import PatientService

    return PatientService(record_repository=get_record_repository())


def get_consultation_service() -> "ConsultationService":
    """
    Get a ConsultationService instance with the repository injected.

    Returns:
        ConsultationService: Service for consultation operations.
    """
    from services import ConsultationService

    return ConsultationService(record_repository=get_record_repository())


def get_auth_service() -> "AuthService":
    """Get an AuthService configured with the login pair from settings."""
    from services import AuthService

    return AuthService(
        username=settings.vet_svc_login_username,
        password=settings.vet_svc_login_password
    )


# =============================================================================
# DEPENDENCY OVERRIDE HELPERS (FOR TESTING)
# =============================================================================

class DependencyOverrides:
    """
    Context manager for temporarily overriding dependencies in tests.

    Usage:
        with DependencyOverrides(app) as overrides:
            overrides.set(get_record_repository, lambda: repo)
            # Run tests with overridden dependency
        # Dependencies restored after context exits
    """

    def __init__(self, app):
        self.app = app
        self._original_overrides = {}

    def __enter__(self):
        self._original_overrides = self.app.dependency_overrides.copy()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.app.dependency_overrides = self._original_overrides

    def set(self, dependency, override):
        """Set a dependency override."""
        self.app.dependency_overrides[dependency] = override
