"""
Clinic router - frontend helper endpoints (connection test and login).
"""
import logging

from fastapi import APIRouter, Depends

from core.dependencies import get_auth_service, get_patient_service
from schemas import ConnectionTestResponse, ErrorResponse, LoginRequest, LoginResponse
from services import AuthService, PatientService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Clinic"])


@router.get(
    "/test",
    response_model=ConnectionTestResponse,
    summary="Storage connection test",
    description="Counts patients in the active store. Returns 503 when it cannot be reached.",
    responses={503: {"model": ErrorResponse}},
)
def connection_test(patient_service: PatientService = Depends(get_patient_service)):
    total = patient_service.count_patients()
    return ConnectionTestResponse(
        success=True,
        mensaje="Conexión exitosa",
        totalPacientes=total
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    response_model_exclude_none=True,
    summary="Check frontend credentials",
)
def login(
    credentials: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Validate the login form.

    Wrong credentials still answer 200 with ``success: false`` so the form can
    show the message.
    """
    if auth_service.authenticate(credentials.username, credentials.password):
        return LoginResponse(success=True)
    return LoginResponse(success=False, message="Credenciales incorrectas")
