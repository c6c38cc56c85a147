"""
Relational storage adapter (SQLite).

All SQL lives in this module. Values are always bound as ``?`` parameters;
only clause structure is assembled at runtime (see repositories.query_builder).

Semantics shared with the document adapter:
- create_* is a strict insert: a duplicate key raises DuplicateKeyError.
- upsert_* replaces business fields, keeps created_at, refreshes updated_at.
- Consultations carry no foreign key, so a dangling patient_id is accepted
  and reads report owner_pet_name as NULL.
"""
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from core.datetime_utils import to_db_string, utc_now
from core.exceptions import (
    ConnectionUnavailableError,
    DuplicateConsultationError,
    DuplicatePatientError,
    PatientNotFoundError,
    StorageError,
    ValidationError,
)
from models import Consultation, Patient
from repositories.base import ConsultationFilter, PatientFilter
from repositories.connection import ConnectionManager
from repositories.query_builder import SqlFilter

logger = logging.getLogger(__name__)

BACKEND_NAME = "relational"

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS patients (
        id TEXT PRIMARY KEY NOT NULL,
        name TEXT NOT NULL,
        species TEXT NOT NULL DEFAULT '',
        breed TEXT NOT NULL DEFAULT '',
        birth_date TEXT,
        owner_name TEXT NOT NULL DEFAULT '',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS consultations (
        consultation_id TEXT PRIMARY KEY NOT NULL,
        patient_id TEXT NOT NULL,
        patient_name TEXT NOT NULL DEFAULT '',
        patient_details TEXT NOT NULL DEFAULT '',
        reason TEXT NOT NULL,
        visit_date TEXT,
        diagnosis TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_consultations_patient_id ON consultations (patient_id)",
)

_PATIENT_COLUMNS = "id, name, species, breed, birth_date, owner_name, created_at, updated_at"

_CONSULTATION_SELECT = """
    SELECT c.consultation_id, c.patient_id, c.patient_name, c.patient_details,
           c.reason, c.visit_date, c.diagnosis, c.created_at, c.updated_at,
           p.name AS owner_pet_name
    FROM consultations c
    LEFT JOIN patients p ON c.patient_id = p.id
"""


def _lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if value is not None else None


class SqliteDatabase:
    """
    SQLite database handle with concurrency settings.

    Creating the object opens the file, enables WAL mode and creates the
    schema; that is the "connect" step the ConnectionManager runs once.
    Each operation then takes a short-lived connection from get_connection().
    """

    def __init__(self, db_path: str, busy_timeout: int = 5000):
        """
        Args:
            db_path: Path to SQLite database file.
            busy_timeout: SQLite busy timeout in milliseconds.
        """
        self.db_path = db_path
        self.busy_timeout = busy_timeout

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _configure_connection(self, conn: sqlite3.Connection) -> None:
        """Configure a new connection: lock timeout, row access by name, unicode_lower()."""
        conn.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout)}")
        conn.row_factory = sqlite3.Row
        conn.create_function("unicode_lower", 1, _lower, deterministic=True)

    def _init_db(self) -> None:
        """Enable WAL mode and create tables and indexes if missing."""
        conn = sqlite3.connect(self.db_path)
        try:
            self._configure_connection(conn)
            mode = conn.execute("PRAGMA journal_mode = WAL").fetchone()
            if not mode or mode[0].lower() != "wal":
                logger.warning(f"Failed to enable WAL mode, current mode: {mode[0] if mode else None}")
            for statement in _SCHEMA:
                conn.execute(statement)
            conn.commit()
        finally:
            conn.close()

        logger.info(
            f"Database initialized: {self.db_path} "
            f"(busy_timeout={self.busy_timeout}ms)"
        )

    def get_connection(self) -> sqlite3.Connection:
        """Open a new configured connection. The caller closes it."""
        conn = sqlite3.connect(self.db_path)
        self._configure_connection(conn)
        return conn


class SqlRecordStore:
    """
    RecordStore implementation over SQLite.

    The SqliteDatabase handle is created lazily by the ConnectionManager on
    first use and shared by every request afterwards.
    """

    backend = BACKEND_NAME

    def __init__(self, connection: ConnectionManager[SqliteDatabase]):
        self._connection = connection

    @classmethod
    def from_path(cls, db_path: str, busy_timeout: int = 5000) -> "SqlRecordStore":
        """Build a store whose handle is created on first use."""
        return cls(ConnectionManager(
            BACKEND_NAME,
            connect=lambda: SqliteDatabase(db_path=db_path, busy_timeout=busy_timeout),
        ))

    @property
    def connection(self) -> ConnectionManager[SqliteDatabase]:
        return self._connection

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[sqlite3.Cursor]:
        """
        Yield a cursor inside one transaction: commit on success, roll back on error.

        sqlite3.OperationalError (locked or unreadable file) surfaces as
        ConnectionUnavailableError; other driver errors as StorageError.
        Domain errors raised inside the block propagate unchanged.
        """
        database = self._connection.get()
        try:
            conn = database.get_connection()
        except sqlite3.Error as exc:
            raise ConnectionUnavailableError(backend=self.backend, operation=operation) from exc
        try:
            cursor = conn.cursor()
            yield cursor
            conn.commit()
        except sqlite3.OperationalError as exc:
            conn.rollback()
            logger.error(f"SQLite unavailable during {operation}: {exc}")
            raise ConnectionUnavailableError(backend=self.backend, operation=operation) from exc
        except sqlite3.IntegrityError:
            conn.rollback()
            raise
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error(f"SQLite error during {operation}: {exc}")
            raise StorageError(operation=operation) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Patients
    # -------------------------------------------------------------------------

    def _fetch_patient(self, cursor: sqlite3.Cursor, patient_id: str) -> Patient:
        cursor.execute(f"SELECT {_PATIENT_COLUMNS} FROM patients WHERE id = ?", (patient_id,))
        return Patient.from_row(cursor.fetchone())

    def create_patient(self, patient: Patient) -> Patient:
        now = to_db_string(utc_now())
        fields = patient.business_fields()
        try:
            with self._transaction("create_patient") as cursor:
                cursor.execute(
                    f"INSERT INTO patients ({_PATIENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        fields["id"], fields["name"], fields["species"], fields["breed"],
                        fields["birth_date"], fields["owner_name"], now, now,
                    ),
                )
                return self._fetch_patient(cursor, patient.id)
        except sqlite3.IntegrityError as exc:
            raise self._integrity_error(exc, DuplicatePatientError(patient_id=patient.id)) from exc

    def upsert_patient(self, patient: Patient) -> Patient:
        now = to_db_string(utc_now())
        fields = patient.business_fields()
        try:
            with self._transaction("upsert_patient") as cursor:
                cursor.execute(
                    f"""
                    INSERT INTO patients ({_PATIENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        name = excluded.name,
                        species = excluded.species,
                        breed = excluded.breed,
                        birth_date = excluded.birth_date,
                        owner_name = excluded.owner_name,
                        updated_at = excluded.updated_at
                    """,
                    (
                        fields["id"], fields["name"], fields["species"], fields["breed"],
                        fields["birth_date"], fields["owner_name"], now, now,
                    ),
                )
                return self._fetch_patient(cursor, patient.id)
        except sqlite3.IntegrityError as exc:
            raise self._integrity_error(exc) from exc

    def find_patients(self, criteria: PatientFilter) -> List[Patient]:
        where = SqlFilter().equals("id", criteria.id).contains("name", criteria.name_contains)
        clause, params = where.render()
        with self._transaction("find_patients") as cursor:
            cursor.execute(
                f"SELECT {_PATIENT_COLUMNS} FROM patients{clause} ORDER BY name ASC, id ASC",
                params,
            )
            return [Patient.from_row(row) for row in cursor.fetchall()]

    def count_patients(self) -> int:
        with self._transaction("count_patients") as cursor:
            cursor.execute("SELECT COUNT(*) FROM patients")
            return cursor.fetchone()[0]

    def delete_patient(self, patient_id: str) -> None:
        with self._transaction("delete_patient") as cursor:
            cursor.execute("DELETE FROM patients WHERE id = ?", (patient_id,))
            if cursor.rowcount == 0:
                raise PatientNotFoundError(patient_id=patient_id)

    # -------------------------------------------------------------------------
    # Consultations
    # -------------------------------------------------------------------------

    def _fetch_consultation(self, cursor: sqlite3.Cursor, consultation_id: str) -> Consultation:
        cursor.execute(_CONSULTATION_SELECT + " WHERE c.consultation_id = ?", (consultation_id,))
        return Consultation.from_row(cursor.fetchone())

    @staticmethod
    def _consultation_params(consultation: Consultation, now: str) -> tuple:
        fields = consultation.business_fields()
        return (
            fields["consultation_id"], fields["patient_id"], fields["patient_name"],
            fields["patient_details"], fields["reason"], fields["visit_date"],
            fields["diagnosis"], now, now,
        )

    def create_consultation(self, consultation: Consultation) -> Consultation:
        now = to_db_string(utc_now())
        try:
            with self._transaction("create_consultation") as cursor:
                cursor.execute(
                    """
                    INSERT INTO consultations
                    (consultation_id, patient_id, patient_name, patient_details,
                     reason, visit_date, diagnosis, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    self._consultation_params(consultation, now),
                )
                return self._fetch_consultation(cursor, consultation.consultation_id)
        except sqlite3.IntegrityError as exc:
            raise self._integrity_error(
                exc, DuplicateConsultationError(consultation_id=consultation.consultation_id)
            ) from exc

    def upsert_consultation(self, consultation: Consultation) -> Consultation:
        now = to_db_string(utc_now())
        try:
            with self._transaction("upsert_consultation") as cursor:
                cursor.execute(
                    """
                    INSERT INTO consultations
                    (consultation_id, patient_id, patient_name, patient_details,
                     reason, visit_date, diagnosis, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(consultation_id) DO UPDATE SET
                        patient_id = excluded.patient_id,
                        patient_name = excluded.patient_name,
                        patient_details = excluded.patient_details,
                        reason = excluded.reason,
                        visit_date = excluded.visit_date,
                        diagnosis = excluded.diagnosis,
                        updated_at = excluded.updated_at
                    """,
                    self._consultation_params(consultation, now),
                )
                return self._fetch_consultation(cursor, consultation.consultation_id)
        except sqlite3.IntegrityError as exc:
            raise self._integrity_error(exc) from exc

    def find_consultations(self, criteria: ConsultationFilter) -> List[Consultation]:
        where = (
            SqlFilter()
            .equals("c.consultation_id", criteria.consultation_id)
            .equals("c.patient_id", criteria.patient_id)
        )
        clause, params = where.render()
        with self._transaction("find_consultations") as cursor:
            cursor.execute(
                _CONSULTATION_SELECT + clause + " ORDER BY c.visit_date ASC, c.consultation_id ASC",
                params,
            )
            return [Consultation.from_row(row) for row in cursor.fetchall()]

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def ping(self) -> None:
        with self._transaction("ping") as cursor:
            cursor.execute("SELECT 1")

    def close(self) -> None:
        self._connection.close()

    @staticmethod
    def _integrity_error(exc: sqlite3.IntegrityError, duplicate=None):
        """Map an IntegrityError to DuplicateKeyError (key collision) or ValidationError."""
        message = str(exc)
        if duplicate is not None and ("UNIQUE" in message or "PRIMARY KEY" in message):
            logger.warning(f"Duplicate key rejected: {duplicate.detail}")
            return duplicate
        logger.warning(f"SQLite constraint violated: {message}")
        return ValidationError(detail="Registro inválido: falta un campo obligatorio")
