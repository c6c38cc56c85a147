"""
Document storage adapter (MongoDB via pymongo).

Two collections, ``patients`` and ``consultations``, keyed by business ids
(``id`` and ``consultation_id``) backed by unique indexes. The MongoDB
``_id`` never leaves this module.

Semantics shared with the relational adapter:
- create_* is a strict insert: a duplicate key raises DuplicateKeyError.
- upsert_* replaces business fields, keeps created_at, refreshes updated_at.
- Reads join the referenced patient's current name as owner_pet_name
  (None for a dangling reference).
"""
import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from pymongo import ASCENDING, TEXT, MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError

from core.datetime_utils import utc_now
from core.exceptions import (
    ConnectionUnavailableError,
    DuplicateConsultationError,
    DuplicatePatientError,
    PatientNotFoundError,
    StorageError,
    VetServiceError,
)
from models import Consultation, Patient
from repositories.base import ConsultationFilter, PatientFilter
from repositories.connection import ConnectionManager

logger = logging.getLogger(__name__)

BACKEND_NAME = "document"

PATIENTS = "patients"
CONSULTATIONS = "consultations"


@dataclass
class MongoHandle:
    """Shared client plus the selected database."""

    client: Any
    db: Database

    def close(self) -> None:
        self.client.close()


def ensure_indexes(db: Database) -> None:
    """Create the indexes the adapter relies on (idempotent)."""
    db[PATIENTS].create_index([("id", ASCENDING)], unique=True, name="patients_id_unique")
    db[PATIENTS].create_index([("name", TEXT)], name="patients_name_text")
    db[CONSULTATIONS].create_index(
        [("consultation_id", ASCENDING)], unique=True, name="consultations_id_unique"
    )
    db[CONSULTATIONS].create_index([("patient_id", ASCENDING)], name="consultations_patient_id")


def open_database(client: Any, db_name: str) -> MongoHandle:
    """
    Verify the server answers and prepare the database.

    The handle is only returned once the ping succeeded and every index
    exists, so a CONNECTED manager always means a ready adapter.
    """
    client.admin.command("ping")
    db = client[db_name]
    ensure_indexes(db)
    logger.info("MongoDB ready", extra={"database": db_name})
    return MongoHandle(client=client, db=db)


class MongoRecordStore:
    """RecordStore implementation over MongoDB."""

    backend = BACKEND_NAME

    def __init__(self, connection: ConnectionManager[MongoHandle]):
        self._connection = connection

    @classmethod
    def from_uri(cls, uri: str, db_name: str, timeout_ms: int = 5000) -> "MongoRecordStore":
        """Build a store whose client is created on first use."""

        def connect() -> MongoHandle:
            client = MongoClient(uri, serverSelectionTimeoutMS=timeout_ms, tz_aware=True)
            try:
                return open_database(client, db_name)
            except Exception:
                client.close()
                raise

        return cls(ConnectionManager(BACKEND_NAME, connect=connect, close=MongoHandle.close))

    @property
    def connection(self) -> ConnectionManager[MongoHandle]:
        return self._connection

    def _collection(self, name: str):
        return self._connection.get().db[name]

    @contextmanager
    def _errors(self, operation: str, duplicate: Optional[VetServiceError] = None) -> Iterator[None]:
        """Translate pymongo errors into service exceptions."""
        try:
            yield
        except DuplicateKeyError as exc:
            if duplicate is None:
                logger.error(f"Unexpected duplicate key during {operation}: {exc}")
                raise StorageError(operation=operation) from exc
            logger.warning(f"Duplicate key rejected: {duplicate.detail}")
            raise duplicate from exc
        except ConnectionFailure as exc:
            logger.error(f"MongoDB unavailable during {operation}: {exc}")
            raise ConnectionUnavailableError(backend=self.backend, operation=operation) from exc
        except PyMongoError as exc:
            logger.error(f"MongoDB error during {operation}: {exc}")
            raise StorageError(operation=operation) from exc

    # -------------------------------------------------------------------------
    # Patients
    # -------------------------------------------------------------------------

    def _fetch_patient(self, patient_id: str) -> Patient:
        doc = self._collection(PATIENTS).find_one({"id": patient_id}, {"_id": 0})
        return Patient.from_document(doc)

    def create_patient(self, patient: Patient) -> Patient:
        now = utc_now()
        doc = {**patient.business_fields(), "created_at": now, "updated_at": now}
        with self._errors("create_patient", DuplicatePatientError(patient_id=patient.id)):
            self._collection(PATIENTS).insert_one(doc)
            return self._fetch_patient(patient.id)

    def upsert_patient(self, patient: Patient) -> Patient:
        now = utc_now()
        fields = {k: v for k, v in patient.business_fields().items() if k != "id"}
        with self._errors("upsert_patient"):
            self._collection(PATIENTS).update_one(
                {"id": patient.id},
                {"$set": {**fields, "updated_at": now}, "$setOnInsert": {"created_at": now}},
                upsert=True,
            )
            return self._fetch_patient(patient.id)

    @staticmethod
    def patient_query(criteria: PatientFilter) -> Dict[str, Any]:
        """Build the find() filter document for a PatientFilter."""
        query: Dict[str, Any] = {}
        if criteria.id is not None:
            query["id"] = criteria.id
        if criteria.name_contains is not None:
            query["name"] = {"$regex": re.escape(criteria.name_contains), "$options": "i"}
        return query

    def find_patients(self, criteria: PatientFilter) -> List[Patient]:
        with self._errors("find_patients"):
            cursor = self._collection(PATIENTS).find(
                self.patient_query(criteria), {"_id": 0}
            ).sort([("name", ASCENDING), ("id", ASCENDING)])
            return [Patient.from_document(doc) for doc in cursor]

    def count_patients(self) -> int:
        with self._errors("count_patients"):
            return self._collection(PATIENTS).count_documents({})

    def delete_patient(self, patient_id: str) -> None:
        with self._errors("delete_patient"):
            result = self._collection(PATIENTS).delete_one({"id": patient_id})
        if result.deleted_count == 0:
            raise PatientNotFoundError(patient_id=patient_id)

    # -------------------------------------------------------------------------
    # Consultations
    # -------------------------------------------------------------------------

    @staticmethod
    def consultation_pipeline(criteria: ConsultationFilter) -> List[Dict[str, Any]]:
        """
        Aggregation for the consultation-with-owner-name view.

        Stage order: optional exact-match filter, left-outer lookup against
        patients, owner name extraction (or null), removal of the joined
        sub-document, then a stable sort.
        """
        match: Dict[str, Any] = {}
        if criteria.consultation_id is not None:
            match["consultation_id"] = criteria.consultation_id
        if criteria.patient_id is not None:
            match["patient_id"] = criteria.patient_id

        pipeline: List[Dict[str, Any]] = []
        if match:
            pipeline.append({"$match": match})
        pipeline.extend([
            {"$lookup": {
                "from": PATIENTS,
                "localField": "patient_id",
                "foreignField": "id",
                "as": "patient",
            }},
            {"$unwind": {"path": "$patient", "preserveNullAndEmptyArrays": True}},
            {"$addFields": {"owner_pet_name": {"$ifNull": ["$patient.name", None]}}},
            {"$project": {"_id": 0, "patient": 0}},
            {"$sort": {"visit_date": ASCENDING, "consultation_id": ASCENDING}},
        ])
        return pipeline

    def _fetch_consultation(self, consultation_id: str) -> Consultation:
        pipeline = self.consultation_pipeline(ConsultationFilter(consultation_id=consultation_id))
        docs = list(self._collection(CONSULTATIONS).aggregate(pipeline))
        return Consultation.from_document(docs[0])

    def create_consultation(self, consultation: Consultation) -> Consultation:
        now = utc_now()
        doc = {**consultation.business_fields(), "created_at": now, "updated_at": now}
        duplicate = DuplicateConsultationError(consultation_id=consultation.consultation_id)
        with self._errors("create_consultation", duplicate):
            self._collection(CONSULTATIONS).insert_one(doc)
            return self._fetch_consultation(consultation.consultation_id)

    def upsert_consultation(self, consultation: Consultation) -> Consultation:
        now = utc_now()
        fields = {
            k: v for k, v in consultation.business_fields().items() if k != "consultation_id"
        }
        with self._errors("upsert_consultation"):
            self._collection(CONSULTATIONS).update_one(
                {"consultation_id": consultation.consultation_id},
                {"$set": {**fields, "updated_at": now}, "$setOnInsert": {"created_at": now}},
                upsert=True,
            )
            return self._fetch_consultation(consultation.consultation_id)

    def find_consultations(self, criteria: ConsultationFilter) -> List[Consultation]:
        with self._errors("find_consultations"):
            docs = self._collection(CONSULTATIONS).aggregate(self.consultation_pipeline(criteria))
            return [Consultation.from_document(doc) for doc in docs]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def ping(self) -> None:
        with self._errors("ping"):
            self._connection.get().client.admin.command("ping")

    def close(self) -> None:
        self._connection.close()
