"""
Consultas router - consultation endpoints and per-pet history.

Architecture:
    HTTP Request → Router (this file) → ConsultationService → RecordRepository → RecordStore
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from core.dependencies import get_consultation_service
from schemas import (
    ConsultationCreate,
    ConsultationFields,
    ConsultationResponse,
    ErrorResponse,
    OperationResult,
)
from services import ConsultationService

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Consultas"],
    responses={
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)


@router.post(
    "/consultas",
    response_model=OperationResult,
    status_code=201,
    summary="Register a consultation",
    responses={409: {"model": ErrorResponse}},
)
def create_consultation(
    consultation: ConsultationCreate,
    consultation_service: ConsultationService = Depends(get_consultation_service)
):
    """
    Register a consultation.

    - **idConsulta**: unique consultation id (409 if taken)
    - **idMascota**: referenced patient; not required to exist
    - **nombrePaciente**: name snapshot stored as given
    """
    consultation_service.register_consultation(consultation)
    return OperationResult(success=True, message="Consulta registrada")


@router.put(
    "/consultas/{consultation_id}",
    response_model=OperationResult,
    summary="Create or replace a consultation",
)
def save_consultation(
    consultation: ConsultationFields,
    consultation_id: str = Path(..., min_length=1, max_length=30, description="Consultation id"),
    consultation_service: ConsultationService = Depends(get_consultation_service)
):
    consultation_service.save_consultation(consultation_id, consultation)
    return OperationResult(success=True, message="Consulta guardada")


@router.get(
    "/consultas",
    response_model=List[ConsultationResponse],
    summary="List consultations",
    description="Ordered by visit date. Each item carries NombreMascota, the current name "
                "of the referenced patient (null when it no longer exists)."
)
def list_consultations(
    idConsulta: Optional[str] = Query(None, description="Exact consultation id"),
    idMascota: Optional[str] = Query(None, description="Exact patient id"),
    consultation_service: ConsultationService = Depends(get_consultation_service)
):
    return consultation_service.list_consultations(
        consultation_id=idConsulta,
        patient_id=idMascota
    )


@router.get(
    "/historial/{patient_id}",
    response_model=List[ConsultationResponse],
    summary="Consultation history of one pet",
)
def patient_history(
    patient_id: str,
    consultation_service: ConsultationService = Depends(get_consultation_service)
):
    """Same result as GET /consultas?idMascota=..."""
    return consultation_service.patient_history(patient_id)
