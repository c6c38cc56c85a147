"""
Domain model for consultations (one clinical visit of one patient).
"""
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from core.datetime_utils import format_date, format_iso, from_db_string, parse_date, to_utc
from models.patient import _clean


@dataclass
class Consultation:
    """
    Model representing a consultation.

    ``patient_name`` is the name snapshot taken when the consultation was
    written. ``owner_pet_name`` is only populated on reads: it is the
    referenced patient's *current* name, or None when that patient no longer
    exists. The two are independent and may differ.
    """

    consultation_id: str
    patient_id: str
    patient_name: str
    reason: str
    diagnosis: str
    visit_date: Optional[date] = None
    patient_details: str = ""
    owner_pet_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def normalized(self) -> "Consultation":
        """Return a copy with fields normalized the same way for every backend."""
        return replace(
            self,
            consultation_id=_clean(self.consultation_id),
            patient_id=_clean(self.patient_id),
            patient_name=_clean(self.patient_name),
            patient_details=_clean(self.patient_details),
            reason=_clean(self.reason),
            diagnosis=_clean(self.diagnosis),
            visit_date=parse_date(self.visit_date),
        )

    def business_fields(self) -> Dict[str, Any]:
        """Storage representation of the business fields (no timestamps, no join)."""
        return {
            "consultation_id": self.consultation_id,
            "patient_id": self.patient_id,
            "patient_name": self.patient_name,
            "patient_details": self.patient_details,
            "reason": self.reason,
            "visit_date": format_date(self.visit_date),
            "diagnosis": self.diagnosis,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert consultation to dictionary for API responses."""
        data = self.business_fields()
        data["owner_pet_name"] = self.owner_pet_name
        data["created_at"] = format_iso(self.created_at) if self.created_at else None
        data["updated_at"] = format_iso(self.updated_at) if self.updated_at else None
        return data

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Consultation":
        """Create a Consultation from a ``sqlite3.Row`` of the joined read."""
        return cls(
            consultation_id=row["consultation_id"],
            patient_id=row["patient_id"],
            patient_name=row["patient_name"],
            patient_details=row["patient_details"] or "",
            reason=row["reason"],
            visit_date=parse_date(row["visit_date"]),
            diagnosis=row["diagnosis"],
            owner_pet_name=row["owner_pet_name"],
            created_at=from_db_string(row["created_at"]),
            updated_at=from_db_string(row["updated_at"]),
        )

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Consultation":
        """Create a Consultation from an aggregation result document."""
        created_at = doc.get("created_at")
        updated_at = doc.get("updated_at")
        return cls(
            consultation_id=doc["consultation_id"],
            patient_id=doc.get("patient_id", ""),
            patient_name=doc.get("patient_name", ""),
            patient_details=doc.get("patient_details") or "",
            reason=doc.get("reason", ""),
            visit_date=parse_date(doc.get("visit_date")),
            diagnosis=doc.get("diagnosis", ""),
            owner_pet_name=doc.get("owner_pet_name"),
            created_at=to_utc(created_at) if created_at else None,
            updated_at=to_utc(updated_at) if updated_at else None,
        )
