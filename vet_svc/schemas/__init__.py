"""
Pydantic schemas for API request/response validation.

This module contains all Pydantic models used at API boundaries.
"""
from schemas.common import (
    ConnectionTestResponse,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    OperationResult,
)
from schemas.consultation import ConsultationCreate, ConsultationFields, ConsultationResponse
from schemas.patient import PatientCreate, PatientFields, PatientResponse

__all__ = [
    # Envelopes
    "ConnectionTestResponse",
    "ErrorResponse",
    "LoginRequest",
    "LoginResponse",
    "OperationResult",
    # Patient schemas
    "PatientCreate",
    "PatientFields",
    "PatientResponse",
    # Consultation schemas
    "ConsultationCreate",
    "ConsultationFields",
    "ConsultationResponse",
]
