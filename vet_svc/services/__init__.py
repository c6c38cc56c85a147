"""
Service layer for business logic.

This module contains the orchestration services used by the API routers.
"""
from services.auth_service import AuthService
from services.consultation_service import ConsultationService
from services.patient_service import PatientService

__all__ = [
    "AuthService",
    "ConsultationService",
    "PatientService",
]
