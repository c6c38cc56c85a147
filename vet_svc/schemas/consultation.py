"""
Pydantic schemas for consultation-related API operations.
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from models import Consultation


class ConsultationFields(BaseModel):
    """Consultation attributes shared by create and upsert requests."""

    idMascota: str = Field(..., min_length=1, max_length=30, description="Referenced patient id", examples=["PET001"])
    nombrePaciente: str = Field(
        default="",
        max_length=30,
        description="Patient name as known at consultation time (stored as a snapshot)",
        examples=["Luke"]
    )
    detallesPaciente: Optional[str] = Field(default="", description="Free-text patient details")
    motivo: str = Field(..., min_length=1, description="Reason for the visit", examples=["checkup"])
    fecha: Optional[str] = Field(default=None, description="Visit date (YYYY-MM-DD)", examples=["2025-01-01"])
    diagnostico: str = Field(..., min_length=1, description="Diagnosis", examples=["healthy"])

    def to_model(self, consultation_id: str) -> Consultation:
        """Build the (not yet normalized) domain model."""
        return Consultation(
            consultation_id=consultation_id,
            patient_id=self.idMascota,
            patient_name=self.nombrePaciente,
            patient_details=self.detallesPaciente or "",
            reason=self.motivo,
            visit_date=self.fecha,
            diagnosis=self.diagnostico,
        )


class ConsultationCreate(ConsultationFields):
    """Schema for registering a new consultation."""

    idConsulta: str = Field(..., min_length=1, max_length=30, description="Unique consultation id", examples=["C1"])

    class Config:
        json_schema_extra = {
            "example": {
                "idConsulta": "C1",
                "idMascota": "PET001",
                "nombrePaciente": "Luke",
                "detallesPaciente": "",
                "motivo": "checkup",
                "fecha": "2025-01-01",
                "diagnostico": "healthy"
            }
        }


class ConsultationResponse(BaseModel):
    """
    Schema for a consultation returned by GET /consultas.

    ``nombrePaciente`` is the snapshot stored with the consultation;
    ``NombreMascota`` is the referenced patient's current name (null when the
    patient no longer exists).
    """

    idConsulta: str
    idMascota: str
    nombrePaciente: str
    detallesPaciente: str
    motivo: str
    fecha: Optional[date] = None
    diagnostico: str
    NombreMascota: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    @classmethod
    def from_model(cls, consultation: Consultation) -> "ConsultationResponse":
        data = consultation.to_dict()
        return cls(
            idConsulta=consultation.consultation_id,
            idMascota=consultation.patient_id,
            nombrePaciente=consultation.patient_name,
            detallesPaciente=consultation.patient_details,
            motivo=consultation.reason,
            fecha=consultation.visit_date,
            diagnostico=consultation.diagnosis,
            NombreMascota=consultation.owner_pet_name,
            createdAt=data["created_at"],
            updatedAt=data["updated_at"],
        )
