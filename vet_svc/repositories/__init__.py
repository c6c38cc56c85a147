"""
Repository layer for storage access.

This module contains all storage access, encapsulating SQL, MongoDB queries
and connection lifecycle. The concrete adapters (sql_store, mongo_store) are
imported lazily by build_record_store() so that only the active backend's
driver is loaded.
"""
from repositories.base import ConsultationFilter, PatientFilter, RecordStore
from repositories.connection import ConnectionManager, ConnectionState
from repositories.record_repository import RecordRepository, build_record_store

__all__ = [
    "ConnectionManager",
    "ConnectionState",
    "ConsultationFilter",
    "PatientFilter",
    "RecordRepository",
    "RecordStore",
    "build_record_store",
]
