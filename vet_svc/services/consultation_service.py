"""
Service layer for consultation operations.

Architecture:
    API Layer (routers) → ConsultationService → RecordRepository → active RecordStore
"""
import logging
from typing import List, Optional

from repositories import ConsultationFilter, RecordRepository
from schemas import ConsultationCreate, ConsultationFields, ConsultationResponse

logger = logging.getLogger(__name__)


class ConsultationService:
    """Service layer for consultation operations."""

    def __init__(self, record_repository: RecordRepository):
        """
        Args:
            record_repository: Injected via core.dependencies.get_consultation_service().
        """
        self._repo = record_repository

    def register_consultation(self, data: ConsultationCreate) -> ConsultationResponse:
        """
        Register a new consultation.

        The referenced patient does not have to exist.

        Raises:
            DuplicateConsultationError: If the consultation id already exists.
        """
        created = self._repo.create_consultation(data.to_model(data.idConsulta))
        return ConsultationResponse.from_model(created)

    def save_consultation(self, consultation_id: str, data: ConsultationFields) -> ConsultationResponse:
        """Create or fully replace the consultation with this id."""
        saved = self._repo.upsert_consultation(data.to_model(consultation_id))
        return ConsultationResponse.from_model(saved)

    def list_consultations(
        self,
        consultation_id: Optional[str] = None,
        patient_id: Optional[str] = None
    ) -> List[ConsultationResponse]:
        """
        List consultations ordered by visit date.

        Each result carries NombreMascota, the referenced patient's current
        name (None when that patient is gone).
        """
        consultations = self._repo.find_consultations(
            ConsultationFilter(consultation_id=consultation_id, patient_id=patient_id)
        )
        return [ConsultationResponse.from_model(c) for c in consultations]

    def patient_history(self, patient_id: str) -> List[ConsultationResponse]:
        """All consultations of one pet."""
        history = self.list_consultations(patient_id=patient_id)
        logger.debug(
            "Loaded patient history",
            extra={"patient_id": patient_id, "count": len(history)}
        )
        return history
