"""
Tests for consultation and history endpoints.
"""
import pytest

C1 = {
    "idConsulta": "C1",
    "idMascota": "PET001",
    "nombrePaciente": "Luke",
    "detallesPaciente": "",
    "motivo": "checkup",
    "fecha": "2025-01-01",
    "diagnostico": "healthy",
}


@pytest.fixture
def with_luke(client):
    response = client.post("/pacientes", json={"id": "PET001", "nombre": "Luke"})
    assert response.status_code == 201


def test_create_consultation_success(client, with_luke):
    response = client.post("/consultas", json=C1)
    assert response.status_code == 201
    assert response.json() == {"success": True, "message": "Consulta registrada"}


def test_create_consultation_duplicate(client, with_luke):
    client.post("/consultas", json=C1)

    response = client.post("/consultas", json=C1)
    assert response.status_code == 409
    assert response.json()["success"] is False


def test_create_consultation_missing_diagnosis(client):
    body = {k: v for k, v in C1.items() if k != "diagnostico"}
    response = client.post("/consultas", json=body)
    assert response.status_code == 422
    assert "diagnostico" in response.json()["error"]


def test_get_consultations_includes_current_pet_name(client, with_luke):
    client.post("/consultas", json=C1)

    response = client.get("/consultas", params={"idMascota": "PET001"})
    assert response.status_code == 200
    consultations = response.json()
    assert len(consultations) == 1
    consultation = consultations[0]
    assert consultation["idConsulta"] == "C1"
    assert consultation["NombreMascota"] == "Luke"
    assert consultation["nombrePaciente"] == "Luke"
    assert consultation["fecha"] == "2025-01-01"
    assert consultation["createdAt"].endswith("Z")


def test_pet_name_is_null_after_patient_deleted(client, with_luke):
    client.post("/consultas", json=C1)
    client.delete("/pacientes/PET001")

    consultation = client.get("/consultas", params={"idConsulta": "C1"}).json()[0]
    assert consultation["NombreMascota"] is None
    assert consultation["nombrePaciente"] == "Luke"


def test_put_consultation_upserts(client, with_luke):
    body = {k: v for k, v in C1.items() if k != "idConsulta"}

    assert client.put("/consultas/C1", json=body).status_code == 200
    assert client.put("/consultas/C1", json={**body, "diagnostico": "otitis"}).status_code == 200

    consultations = client.get("/consultas").json()
    assert len(consultations) == 1
    assert consultations[0]["diagnostico"] == "otitis"


def test_history_matches_filtered_read(client, with_luke):
    client.post("/consultas", json=C1)
    client.post("/consultas", json={**C1, "idConsulta": "C2", "fecha": "2025-02-01"})
    client.post("/consultas", json={**C1, "idConsulta": "C3", "idMascota": "PET002"})

    history = client.get("/historial/PET001")
    assert history.status_code == 200
    assert [c["idConsulta"] for c in history.json()] == ["C1", "C2"]
    assert history.json() == client.get("/consultas?idMascota=PET001").json()


def test_history_of_unknown_pet_is_empty(client):
    response = client.get("/historial/PET404")
    assert response.status_code == 200
    assert response.json() == []
