"""
Service layer for patient operations.

This service maps API schemas to domain models and orchestrates calls to
the record repository.

Architecture:
    API Layer (routers) → PatientService → RecordRepository → active RecordStore

Dependency Injection:
    PatientService receives its repository via constructor injection.
    Use core.dependencies.get_patient_service() in routers with Depends().
"""
import logging
from typing import List, Optional

from repositories import PatientFilter, RecordRepository
from schemas import PatientCreate, PatientFields, PatientResponse

logger = logging.getLogger(__name__)


class PatientService:
    """
    Service layer for patient operations.

    Validation of business keys and normalization happen in RecordRepository
    so both backends see identical input.
    """

    def __init__(self, record_repository: RecordRepository):
        """
        Initialize the patient service.

        Args:
            record_repository: RecordRepository instance for data access.
                               Injected via core.dependencies.get_patient_service().
        """
        self._repo = record_repository

    def register_patient(self, data: PatientCreate) -> PatientResponse:
        """
        Register a new patient.

        Raises:
            DuplicatePatientError: If a patient with this id already exists.
        """
        created = self._repo.create_patient(data.to_model(data.id))
        return PatientResponse.from_model(created)

    def save_patient(self, patient_id: str, data: PatientFields) -> PatientResponse:
        """Create or fully replace the patient with this id."""
        saved = self._repo.upsert_patient(data.to_model(patient_id))
        return PatientResponse.from_model(saved)

    def list_patients(
        self,
        patient_id: Optional[str] = None,
        name: Optional[str] = None
    ) -> List[PatientResponse]:
        """
        List patients, optionally filtered.

        Args:
            patient_id: Exact id match.
            name: Case-insensitive substring of the pet name.
        """
        patients = self._repo.find_patients(PatientFilter(id=patient_id, name_contains=name))
        return [PatientResponse.from_model(p) for p in patients]

    def delete_patient(self, patient_id: str) -> None:
        """
        Raises:
            PatientNotFoundError: If no patient has this id.
        """
        self._repo.delete_patient(patient_id)

    def count_patients(self) -> int:
        return self._repo.count_patients()
