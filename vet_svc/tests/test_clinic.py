"""
Tests for the frontend helper endpoints (/test and /login).
"""
from fastapi.testclient import TestClient

from core.dependencies import DependencyOverrides, get_auth_service
from services import AuthService

TEST_USERNAME = "admin"
TEST_PASSWORD = "test-password"


def test_connection_test_counts_patients(client):
    response = client.get("/test")
    assert response.status_code == 200
    assert response.json()["totalPacientes"] == 0

    client.post("/pacientes", json={"id": "PET001", "nombre": "Luke"})
    client.post("/pacientes", json={"id": "PET002", "nombre": "Güero"})

    data = client.get("/test").json()
    assert data["success"] is True
    assert data["mensaje"]
    assert data["totalPacientes"] == 2


def test_connection_test_unavailable(unavailable_client):
    response = unavailable_client.get("/test")
    assert response.status_code == 503
    assert response.json()["success"] is False


def test_login_success(client):
    response = client.post("/login", json={"username": TEST_USERNAME, "password": TEST_PASSWORD})
    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_login_wrong_password(client):
    response = client.post("/login", json={"username": TEST_USERNAME, "password": "nope"})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["message"] == "Credenciales incorrectas"


def test_login_missing_field(client):
    response = client.post("/login", json={"username": TEST_USERNAME})
    assert response.status_code == 422
    assert response.json()["success"] is False


def test_login_uses_injected_credentials(test_app):
    with DependencyOverrides(test_app) as overrides:
        overrides.set(get_auth_service, lambda: AuthService(username="vet", password="s3cret"))
        client = TestClient(test_app)

        assert client.post("/login", json={"username": "vet", "password": "s3cret"}).json() == {"success": True}
        assert client.post("/login", json={"username": TEST_USERNAME, "password": TEST_PASSWORD}).json()["success"] is False

    # Original override restored on exit
    response = TestClient(test_app).post("/login", json={"username": TEST_USERNAME, "password": TEST_PASSWORD})
    assert response.json() == {"success": True}


def test_unexpected_error_keeps_error_envelope(test_app, store, monkeypatch):
    def broken_count():
        raise RuntimeError("driver exploded")

    monkeypatch.setattr(store, "count_patients", broken_count)
    client = TestClient(test_app, raise_server_exceptions=False)

    response = client.get("/test")
    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert response.json() == {"success": False, "error": "Error interno del servidor"}
