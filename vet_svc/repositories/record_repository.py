"""
Storage-agnostic record repository.

RecordRepository is the only data-access object the service layer sees. It
normalizes inputs identically for both backends, rejects records without
their business key, and dispatches to the RecordStore selected at startup.
It holds no state of its own.

Architecture:
    PatientService / ConsultationService
             ↓
    RecordRepository  (normalization, validation, logging)
             ↓
    SqlRecordStore | MongoRecordStore   (chosen once from settings.backend)
"""
import logging
from typing import List, Optional

from core.config import BACKEND_DOCUMENT, BACKEND_RELATIONAL, Settings
from core.exceptions import ValidationError
from models import Consultation, Patient
from repositories.base import ConsultationFilter, PatientFilter, RecordStore

logger = logging.getLogger(__name__)


def build_record_store(settings: Settings) -> RecordStore:
    """
    Create the adapter for the configured backend.

    Nothing connects here; each adapter connects lazily on first use.
    """
    if settings.backend == BACKEND_RELATIONAL:
        from repositories.sql_store import SqlRecordStore

        return SqlRecordStore.from_path(
            settings.database_path,
            busy_timeout=settings.vet_svc_db_busy_timeout,
        )
    if settings.backend == BACKEND_DOCUMENT:
        from repositories.mongo_store import MongoRecordStore

        return MongoRecordStore.from_uri(
            settings.vet_svc_mongo_uri,
            settings.vet_svc_mongo_db,
            timeout_ms=settings.vet_svc_mongo_timeout_ms,
        )
    raise ValueError(f"Unknown storage backend: {settings.backend!r}")


class RecordRepository:
    """
    Facade over the active RecordStore.

    It should be instantiated via core.dependencies.get_record_repository().
    """

    def __init__(self, store: RecordStore):
        """
        Args:
            store: The adapter for the active backend.
        """
        self._store = store

    @property
    def backend(self) -> str:
        return self._store.backend

    # -------------------------------------------------------------------------
    # Patients
    # -------------------------------------------------------------------------

    @staticmethod
    def _prepare_patient(patient: Patient) -> Patient:
        try:
            patient = patient.normalized()
        except ValueError as exc:
            raise ValidationError(detail=f"Fecha de nacimiento inválida: {exc}") from exc
        if not patient.id:
            raise ValidationError(detail="El campo 'id' es obligatorio")
        if not patient.name:
            raise ValidationError(detail="El campo 'nombre' es obligatorio")
        return patient

    def create_patient(self, patient: Patient) -> Patient:
        """
        Insert a new patient.

        Raises:
            ValidationError: If id or name is blank, or the birth date is malformed.
            DuplicatePatientError: If a patient with this id already exists.
        """
        patient = self._prepare_patient(patient)
        created = self._store.create_patient(patient)
        logger.info("Patient created", extra={"patient_id": created.id, "backend": self.backend})
        return created

    def upsert_patient(self, patient: Patient) -> Patient:
        """
        Insert a patient or replace the one with the same id.

        All business fields are overwritten; created_at is preserved.
        """
        patient = self._prepare_patient(patient)
        saved = self._store.upsert_patient(patient)
        logger.info("Patient upserted", extra={"patient_id": saved.id, "backend": self.backend})
        return saved

    def find_patients(self, criteria: Optional[PatientFilter] = None) -> List[Patient]:
        """Return patients matching criteria, or all patients."""
        return self._store.find_patients(criteria or PatientFilter())

    def count_patients(self) -> int:
        return self._store.count_patients()

    def delete_patient(self, patient_id: str) -> None:
        """
        Delete one patient.

        Raises:
            PatientNotFoundError: If no patient has this id.
        """
        patient_id = (patient_id or "").strip()
        if not patient_id:
            raise ValidationError(detail="El campo 'id' es obligatorio")
        self._store.delete_patient(patient_id)
        logger.info("Patient deleted", extra={"patient_id": patient_id, "backend": self.backend})

    # -------------------------------------------------------------------------
    # Consultations
    # -------------------------------------------------------------------------

    @staticmethod
    def _prepare_consultation(consultation: Consultation) -> Consultation:
        try:
            consultation = consultation.normalized()
        except ValueError as exc:
            raise ValidationError(detail=f"Fecha inválida: {exc}") from exc
        for field, label in (
            ("consultation_id", "idConsulta"),
            ("patient_id", "idMascota"),
            ("reason", "motivo"),
            ("diagnosis", "diagnostico"),
        ):
            if not getattr(consultation, field):
                raise ValidationError(detail=f"El campo '{label}' es obligatorio")
        return consultation

    def create_consultation(self, consultation: Consultation) -> Consultation:
        """
        Insert a new consultation.

        The referenced patient is not checked; a dangling idMascota is stored as-is.

        Raises:
            DuplicateConsultationError: If the consultation id already exists.
        """
        consultation = self._prepare_consultation(consultation)
        created = self._store.create_consultation(consultation)
        logger.info(
            "Consultation created",
            extra={
                "consultation_id": created.consultation_id,
                "patient_id": created.patient_id,
                "backend": self.backend,
            }
        )
        return created

    def upsert_consultation(self, consultation: Consultation) -> Consultation:
        """Insert a consultation or replace the one with the same id."""
        consultation = self._prepare_consultation(consultation)
        saved = self._store.upsert_consultation(consultation)
        logger.info(
            "Consultation upserted",
            extra={"consultation_id": saved.consultation_id, "backend": self.backend}
        )
        return saved

    def find_consultations(self, criteria: Optional[ConsultationFilter] = None) -> List[Consultation]:
        """Return consultations with the referenced patient's current name attached."""
        return self._store.find_consultations(criteria or ConsultationFilter())

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def ping(self) -> None:
        self._store.ping()

    def close(self) -> None:
        self._store.close()
