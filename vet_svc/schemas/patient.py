"""
Pydantic schemas for patient-related API operations.

Field names follow the clinic frontend's JSON contract (Spanish keys).
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from models import Patient


class PatientFields(BaseModel):
    """Patient attributes shared by create and upsert requests."""

    nombre: str = Field(
        ...,
        min_length=1,
        max_length=30,
        description="Pet name",
        examples=["Luke"]
    )
    especie: str = Field(default="", max_length=30, description="Species", examples=["Gato"])
    raza: str = Field(default="", max_length=30, description="Breed", examples=["De colores"])
    nacimiento: Optional[str] = Field(
        default=None,
        description="Birth date (YYYY-MM-DD). Empty or missing means unknown.",
        examples=["2024-10-24"]
    )
    propietario: str = Field(default="", max_length=30, description="Owner name", examples=["Alex"])

    def to_model(self, patient_id: str) -> Patient:
        """Build the (not yet normalized) domain model."""
        return Patient(
            id=patient_id,
            name=self.nombre,
            species=self.especie,
            breed=self.raza,
            owner_name=self.propietario,
            birth_date=self.nacimiento,
        )


class PatientCreate(PatientFields):
    """Schema for registering a new patient.

    The id is supplied by the client and must be unique.
    """

    id: str = Field(
        ...,
        min_length=1,
        max_length=30,
        description="Client-supplied unique patient id",
        examples=["PET001"]
    )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "PET001",
                "nombre": "Luke",
                "especie": "Gato",
                "raza": "De colores",
                "nacimiento": "2024-10-24",
                "propietario": "Alex"
            }
        }


class PatientResponse(BaseModel):
    """Schema for a patient returned by GET /pacientes."""

    id: str = Field(..., description="Unique patient id", examples=["PET001"])
    nombre: str = Field(..., description="Pet name", examples=["Luke"])
    especie: str = Field(..., description="Species", examples=["Gato"])
    raza: str = Field(..., description="Breed", examples=["De colores"])
    nacimiento: Optional[date] = Field(None, description="Birth date or null", examples=["2024-10-24"])
    propietario: str = Field(..., description="Owner name", examples=["Alex"])
    createdAt: Optional[str] = Field(None, description="ISO 8601 UTC creation timestamp")
    updatedAt: Optional[str] = Field(None, description="ISO 8601 UTC last-write timestamp")

    @classmethod
    def from_model(cls, patient: Patient) -> "PatientResponse":
        data = patient.to_dict()
        return cls(
            id=patient.id,
            nombre=patient.name,
            especie=patient.species,
            raza=patient.breed,
            nacimiento=patient.birth_date,
            propietario=patient.owner_name,
            createdAt=data["created_at"],
            updatedAt=data["updated_at"],
        )
