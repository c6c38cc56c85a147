"""
Storage contract shared by the relational and document adapters.

RecordStore is the interface both adapters implement. RecordRepository
(repositories/record_repository.py) wraps whichever one was selected at
startup, so nothing above the repository layer knows which store is active.
"""
from dataclasses import dataclass
from typing import List, Optional, Protocol

from models import Consultation, Patient


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class PatientFilter:
    """
    Patient search criteria.

    ``id`` is an exact match, ``name_contains`` a case-insensitive substring
    match. Blank values count as absent; no criteria means "all patients".
    """

    id: Optional[str] = None
    name_contains: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", _blank_to_none(self.id))
        object.__setattr__(self, "name_contains", _blank_to_none(self.name_contains))


@dataclass(frozen=True)
class ConsultationFilter:
    """Consultation search criteria (exact matches, combined with AND)."""

    consultation_id: Optional[str] = None
    patient_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "consultation_id", _blank_to_none(self.consultation_id))
        object.__setattr__(self, "patient_id", _blank_to_none(self.patient_id))


class RecordStore(Protocol):
    """
    Operations every storage adapter provides.

    Inputs are already normalized by RecordRepository. Adapters translate
    driver errors into core.exceptions types and never retry.
    """

    backend: str

    def create_patient(self, patient: Patient) -> Patient:
        """Strict insert; raises DuplicatePatientError if the id exists."""

    def upsert_patient(self, patient: Patient) -> Patient:
        """Insert or fully replace by id, preserving created_at."""

    def find_patients(self, criteria: PatientFilter) -> List[Patient]:
        """Return matching patients ordered by name, then id."""

    def count_patients(self) -> int:
        """Return the total number of patients."""

    def delete_patient(self, patient_id: str) -> None:
        """Remove one patient; raises PatientNotFoundError if none matched."""

    def create_consultation(self, consultation: Consultation) -> Consultation:
        """Strict insert; raises DuplicateConsultationError if the id exists."""

    def upsert_consultation(self, consultation: Consultation) -> Consultation:
        """Insert or fully replace by consultation id, preserving created_at."""

    def find_consultations(self, criteria: ConsultationFilter) -> List[Consultation]:
        """Return matching consultations with owner_pet_name joined from patients."""

    def ping(self) -> None:
        """Raise ConnectionUnavailableError if the store is unreachable."""

    def close(self) -> None:
        """Release the shared connection handle."""
