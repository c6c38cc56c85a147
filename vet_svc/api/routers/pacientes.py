"""
Pacientes router - patient management endpoints.

Architecture:
    HTTP Request → Router (this file) → PatientService → RecordRepository → RecordStore

Endpoints are plain ``def`` so FastAPI runs the blocking store calls in its
threadpool instead of on the event loop.

Dependency Injection:
    Services are injected via FastAPI's Depends() mechanism.
    The DI chain is defined in core/dependencies.py.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from core.dependencies import get_patient_service
from schemas import ErrorResponse, OperationResult, PatientCreate, PatientFields, PatientResponse
from services import PatientService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/pacientes",
    tags=["Pacientes"],
    responses={
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


@router.post(
    "",
    response_model=OperationResult,
    status_code=201,
    summary="Register a new patient",
    responses={409: {"model": ErrorResponse}},
)
def create_patient(
    patient: PatientCreate,
    patient_service: PatientService = Depends(get_patient_service)
):
    """
    Register a new patient.

    - **id**: client-supplied id, must be unique (409 otherwise)
    - **nombre**: pet name (required)

    DuplicatePatientError is rendered by the handlers from setup_exception_handlers().
    """
    patient_service.register_patient(patient)
    return OperationResult(success=True, message="Paciente registrado")


@router.put(
    "/{patient_id}",
    response_model=OperationResult,
    summary="Create or replace a patient",
)
def save_patient(
    patient: PatientFields,
    patient_id: str = Path(..., min_length=1, max_length=30, description="Patient id"),
    patient_service: PatientService = Depends(get_patient_service)
):
    """Upsert: every field is overwritten, createdAt is kept for existing patients."""
    patient_service.save_patient(patient_id, patient)
    return OperationResult(success=True, message="Paciente guardado")


@router.get(
    "",
    response_model=List[PatientResponse],
    summary="List patients",
    description="Filter by exact id and/or a case-insensitive substring of the name. "
                "Empty parameters are ignored."
)
def list_patients(
    id: Optional[str] = Query(None, description="Exact patient id", examples=["PET001"]),
    nombre: Optional[str] = Query(None, description="Substring of the pet name", examples=["luk"]),
    patient_service: PatientService = Depends(get_patient_service)
):
    return patient_service.list_patients(patient_id=id, name=nombre)


@router.delete(
    "/{patient_id}",
    response_model=OperationResult,
    summary="Delete a patient",
    responses={404: {"model": ErrorResponse}},
)
def delete_patient(
    patient_id: str,
    patient_service: PatientService = Depends(get_patient_service)
):
    """
    Delete one patient.

    Consultations that reference it are kept; their NombreMascota becomes null.
    """
    patient_service.delete_patient(patient_id)
    return OperationResult(success=True, message="Paciente eliminado")
