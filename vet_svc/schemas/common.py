"""
Pydantic schemas for the envelope responses shared by all endpoints.
"""
from typing import Optional

from pydantic import BaseModel, Field


class OperationResult(BaseModel):
    """``{success, message}`` returned by write operations."""

    success: bool = Field(..., examples=[True])
    message: str = Field(..., examples=["Paciente registrado"])


class ErrorResponse(BaseModel):
    """``{success: false, error}`` returned for every failure."""

    success: bool = Field(False, examples=[False])
    error: str = Field(..., examples=["Paciente 'PET404' no encontrado"])


class ConnectionTestResponse(BaseModel):
    """Response of GET /test."""

    success: bool
    mensaje: str
    totalPacientes: int


class LoginRequest(BaseModel):
    """Credentials posted by the login form."""

    username: str = Field(..., examples=["admin"])
    password: str = Field(..., examples=["admin123"])


class LoginResponse(BaseModel):
    """Login outcome; ``message`` is only set on failure."""

    success: bool
    message: Optional[str] = None
