"""
Tests for patient endpoints.
"""
import pytest

LUKE = {
    "id": "PET001",
    "nombre": "Luke",
    "especie": "Gato",
    "raza": "De colores",
    "nacimiento": "2024-10-24",
    "propietario": "Alex",
}


# Patient Endpoint Tests
def test_create_patient_success(client):
    """Test successful patient creation."""
    response = client.post("/pacientes", json=LUKE)
    assert response.status_code == 201
    assert response.json() == {"success": True, "message": "Paciente registrado"}


def test_create_patient_duplicate(client):
    """Test creating a duplicate patient returns 409 with the error envelope."""
    assert client.post("/pacientes", json=LUKE).status_code == 201

    response = client.post("/pacientes", json={**LUKE, "nombre": "Other"})
    assert response.status_code == 409
    data = response.json()
    assert data["success"] is False
    assert "PET001" in data["error"]
    assert "ya existe" in data["error"]


def test_create_patient_validation_missing_name(client):
    """Test patient creation without nombre fails validation."""
    response = client.post("/pacientes", json={"id": "PET001"})
    assert response.status_code == 422
    data = response.json()
    assert data["success"] is False
    assert "nombre" in data["error"]


def test_create_patient_blank_id_rejected(client):
    response = client.post("/pacientes", json={**LUKE, "id": "   "})
    assert response.status_code == 422
    assert response.json()["success"] is False


@pytest.mark.parametrize("nacimiento", ["ayer", "2024-10-24garbage"])
def test_create_patient_bad_birth_date_rejected(client, nacimiento):
    response = client.post("/pacientes", json={**LUKE, "nacimiento": nacimiento})
    assert response.status_code == 422
    assert response.json()["success"] is False


def test_get_patients_empty(client):
    """Test getting patients when the store is empty."""
    response = client.get("/pacientes")
    assert response.status_code == 200
    assert response.json() == []


def test_get_patients_returns_wire_fields(client):
    client.post("/pacientes", json=LUKE)

    response = client.get("/pacientes", params={"id": "PET001"})
    assert response.status_code == 200
    patients = response.json()
    assert len(patients) == 1
    patient = patients[0]
    assert {k: patient[k] for k in LUKE} == LUKE
    assert patient["createdAt"].endswith("Z")
    assert patient["updatedAt"].endswith("Z")


def test_get_patients_search_by_name(client):
    client.post("/pacientes", json=LUKE)
    client.post("/pacientes", json={**LUKE, "id": "PET002", "nombre": "Bruno"})

    response = client.get("/pacientes", params={"nombre": "luk"})
    assert [p["id"] for p in response.json()] == ["PET001"]


def test_get_patients_empty_params_are_ignored(client):
    client.post("/pacientes", json=LUKE)
    client.post("/pacientes", json={**LUKE, "id": "PET002", "nombre": "Bruno"})

    response = client.get("/pacientes?id=&nombre=")
    assert response.status_code == 200
    assert [p["nombre"] for p in response.json()] == ["Bruno", "Luke"]


def test_get_patients_without_birth_date(client):
    client.post("/pacientes", json={"id": "PET003", "nombre": "Milo", "nacimiento": ""})

    patient = client.get("/pacientes", params={"id": "PET003"}).json()[0]
    assert patient["nacimiento"] is None
    assert patient["especie"] == ""


def test_put_patient_upserts(client):
    """PUT creates the patient, then replaces it in place."""
    body = {k: v for k, v in LUKE.items() if k != "id"}

    response = client.put("/pacientes/PET001", json=body)
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = client.put("/pacientes/PET001", json={**body, "nombre": "Lucas"})
    assert response.status_code == 200

    patients = client.get("/pacientes").json()
    assert len(patients) == 1
    assert patients[0]["nombre"] == "Lucas"


def test_delete_patient(client):
    client.post("/pacientes", json=LUKE)

    response = client.delete("/pacientes/PET001")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Paciente eliminado"}
    assert client.get("/pacientes").json() == []


def test_delete_missing_patient_returns_404(client):
    response = client.delete("/pacientes/PET404")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Paciente 'PET404' no encontrado"}


def test_store_unavailable_returns_503(unavailable_client):
    response = unavailable_client.get("/pacientes")
    assert response.status_code == 503
    data = response.json()
    assert data["success"] is False
    assert "unavailable" in data["error"]
    assert "refused" not in data["error"]
