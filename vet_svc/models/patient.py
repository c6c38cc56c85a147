"""
Domain model for patients (animals under care).
"""
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from core.datetime_utils import format_date, format_iso, from_db_string, parse_date, to_utc


def _clean(value: Any) -> str:
    """Normalize an optional text field: None -> "", surrounding whitespace stripped."""
    return "" if value is None else str(value).strip()


@dataclass
class Patient:
    """Model representing a patient in the system."""

    id: str
    name: str
    species: str
    breed: str
    owner_name: str
    birth_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def normalized(self) -> "Patient":
        """
        Return a copy with fields normalized the same way for every backend.

        Strings are stripped, and an empty birth date becomes None.
        """
        return replace(
            self,
            id=_clean(self.id),
            name=_clean(self.name),
            species=_clean(self.species),
            breed=_clean(self.breed),
            owner_name=_clean(self.owner_name),
            birth_date=parse_date(self.birth_date),
        )

    def business_fields(self) -> Dict[str, Any]:
        """Storage representation of the business fields (no timestamps)."""
        return {
            "id": self.id,
            "name": self.name,
            "species": self.species,
            "breed": self.breed,
            "birth_date": format_date(self.birth_date),
            "owner_name": self.owner_name,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert patient to dictionary for API responses."""
        data = self.business_fields()
        data["created_at"] = format_iso(self.created_at) if self.created_at else None
        data["updated_at"] = format_iso(self.updated_at) if self.updated_at else None
        return data

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Patient":
        """
        Create a Patient from a ``sqlite3.Row``.

        Args:
            row: Row with the columns of the ``patients`` table.
        """
        return cls(
            id=row["id"],
            name=row["name"],
            species=row["species"],
            breed=row["breed"],
            owner_name=row["owner_name"],
            birth_date=parse_date(row["birth_date"]),
            created_at=from_db_string(row["created_at"]),
            updated_at=from_db_string(row["updated_at"]),
        )

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Patient":
        """Create a Patient from a MongoDB document."""
        created_at = doc.get("created_at")
        updated_at = doc.get("updated_at")
        return cls(
            id=doc["id"],
            name=doc.get("name", ""),
            species=doc.get("species", ""),
            breed=doc.get("breed", ""),
            owner_name=doc.get("owner_name", ""),
            birth_date=parse_date(doc.get("birth_date")),
            created_at=to_utc(created_at) if created_at else None,
            updated_at=to_utc(updated_at) if updated_at else None,
        )
