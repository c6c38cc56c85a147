"""
Shared pytest fixtures for repository and API tests.

Key patterns:

1. Backend Parametrization: every test that touches storage runs once against
   a temp-file SQLite store and once against an in-memory MongoDB (mongomock)
2. DI Override: app.dependency_overrides injects the test repository/services
3. Connection Injection: the Mongo client is handed to the store through its
   ConnectionManager's connect callable

Fixture Hierarchy:
    backend → store → repository → services → test_app → client
"""
import mongomock
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core import dependencies as deps
from core.exceptions import setup_exception_handlers
from repositories import ConnectionManager, RecordRepository
from repositories.mongo_store import MongoHandle, MongoRecordStore, open_database
from repositories.sql_store import SqlRecordStore
from services import AuthService, ConsultationService, PatientService

TEST_USERNAME = "admin"
TEST_PASSWORD = "test-password"


def make_mongo_store(client=None, db_name: str = "vet_test") -> MongoRecordStore:
    """Build a MongoRecordStore backed by mongomock."""
    client = client or mongomock.MongoClient()
    return MongoRecordStore(ConnectionManager(
        "document",
        connect=lambda: open_database(client, db_name),
        close=MongoHandle.close,
    ))


@pytest.fixture(params=["relational", "document"])
def backend(request):
    """Name of the backend under test."""
    return request.param


@pytest.fixture
def store(backend, tmp_path):
    """
    Fresh store for the backend under test.

    SQLite gets a new file per test; Mongo gets a new mongomock client.
    """
    if backend == "relational":
        record_store = SqlRecordStore.from_path(str(tmp_path / "vet_test.db"))
    else:
        record_store = make_mongo_store()
    yield record_store
    record_store.close()


@pytest.fixture
def repository(store):
    """RecordRepository bound to the test store."""
    return RecordRepository(store=store)


@pytest.fixture
def patient_service(repository):
    return PatientService(record_repository=repository)


@pytest.fixture
def consultation_service(repository):
    return ConsultationService(record_repository=repository)


@pytest.fixture
def auth_service():
    return AuthService(username=TEST_USERNAME, password=TEST_PASSWORD)


def build_test_app(repository, patient_service, consultation_service, auth_service) -> FastAPI:
    """
    Create a FastAPI app with the real routers and test dependencies.

    Exception handlers are registered the same way as in main.py.
    """
    from api.routers import clinic_router, consultas_router, health_router, pacientes_router

    app = FastAPI(title="Vet Clinic Record Service Test")
    setup_exception_handlers(app)

    app.dependency_overrides[deps.get_record_repository] = lambda: repository
    app.dependency_overrides[deps.get_patient_service] = lambda: patient_service
    app.dependency_overrides[deps.get_consultation_service] = lambda: consultation_service
    app.dependency_overrides[deps.get_auth_service] = lambda: auth_service

    app.include_router(health_router)
    app.include_router(clinic_router)
    app.include_router(pacientes_router)
    app.include_router(consultas_router)
    return app


@pytest.fixture
def test_app(repository, patient_service, consultation_service, auth_service):
    app = build_test_app(repository, patient_service, consultation_service, auth_service)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client for the API."""
    return TestClient(test_app)


@pytest.fixture
def unavailable_client(backend, auth_service):
    """
    Test client whose store can never connect.

    Exercises the 503 path for the backend under test.
    """
    def refuse():
        raise OSError("connection refused")

    if backend == "relational":
        dead_store = SqlRecordStore(ConnectionManager("relational", connect=refuse))
    else:
        dead_store = MongoRecordStore(ConnectionManager("document", connect=refuse))
    repository = RecordRepository(store=dead_store)
    app = build_test_app(
        repository,
        PatientService(record_repository=repository),
        ConsultationService(record_repository=repository),
        auth_service,
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def luke(repository):
    """The PET001 demo patient, already stored."""
    from models import Patient

    return repository.upsert_patient(Patient(
        id="PET001",
        name="Luke",
        species="Gato",
        breed="De colores",
        birth_date="2024-10-24",
        owner_name="Alex",
    ))
