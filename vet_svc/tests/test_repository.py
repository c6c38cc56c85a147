"""
Tests for RecordRepository against both storage backends.

Every test runs twice (relational and document) via the ``backend`` fixture
parametrization in conftest.py, so identical assertions prove the two
adapters behave the same.
"""
from datetime import date

import pytest

from core.exceptions import (
    DuplicateConsultationError,
    DuplicateKeyError,
    DuplicatePatientError,
    NotFoundError,
    PatientNotFoundError,
    ValidationError,
)
from models import Consultation, Patient
from repositories import ConsultationFilter, PatientFilter


def make_patient(patient_id="PET001", name="Luke", **overrides):
    fields = {
        "id": patient_id,
        "name": name,
        "species": "Gato",
        "breed": "De colores",
        "birth_date": "2024-10-24",
        "owner_name": "Alex",
    }
    fields.update(overrides)
    return Patient(**fields)


def make_consultation(consultation_id="C1", patient_id="PET001", **overrides):
    fields = {
        "consultation_id": consultation_id,
        "patient_id": patient_id,
        "patient_name": "Luke",
        "reason": "checkup",
        "diagnosis": "healthy",
        "visit_date": "2025-01-01",
    }
    fields.update(overrides)
    return Consultation(**fields)


# =============================================================================
# PATIENT WRITES
# =============================================================================

def test_upsert_then_find_returns_normalized_record(repository):
    """A stored patient reads back equal to the normalized input."""
    repository.upsert_patient(make_patient(
        patient_id="  PET001 ",
        name=" Luke ",
        species="Gato ",
        owner_name=None,
    ))

    found = repository.find_patients(PatientFilter(id="PET001"))
    assert len(found) == 1
    patient = found[0]
    assert patient.id == "PET001"
    assert patient.name == "Luke"
    assert patient.species == "Gato"
    assert patient.breed == "De colores"
    assert patient.birth_date == date(2024, 10, 24)
    assert patient.owner_name == ""
    assert patient.created_at is not None
    assert patient.updated_at is not None


def test_upsert_existing_patient_updates_in_place(repository):
    """Re-registering an id replaces the fields and keeps one record."""
    first = repository.upsert_patient(make_patient())
    repository.upsert_patient(make_patient(name="Luke II", breed="Siames"))

    found = repository.find_patients(PatientFilter(id="PET001"))
    assert len(found) == 1
    assert found[0].name == "Luke II"
    assert found[0].breed == "Siames"
    assert found[0].created_at == first.created_at
    assert repository.count_patients() == 1


def test_create_duplicate_patient_raises(repository):
    repository.create_patient(make_patient())

    with pytest.raises(DuplicatePatientError) as exc_info:
        repository.create_patient(make_patient(name="Another"))

    assert isinstance(exc_info.value, DuplicateKeyError)
    assert exc_info.value.status_code == 409
    assert "PET001" in exc_info.value.detail
    assert repository.find_patients(PatientFilter(id="PET001"))[0].name == "Luke"


def test_empty_birth_date_is_stored_as_none(repository):
    repository.create_patient(make_patient(birth_date=""))

    assert repository.find_patients(PatientFilter(id="PET001"))[0].birth_date is None


@pytest.mark.parametrize("patient", [
    make_patient(patient_id="   "),
    make_patient(name=""),
    make_patient(birth_date="24/10/2024"),
    make_patient(birth_date="2024-10-24garbage"),
])
def test_invalid_patient_is_rejected(repository, patient):
    with pytest.raises(ValidationError):
        repository.upsert_patient(patient)

    assert repository.count_patients() == 0


def test_birth_date_timestamp_keeps_calendar_date(repository):
    repository.upsert_patient(make_patient(birth_date="2024-10-24T08:30:00Z"))

    assert repository.find_patients(PatientFilter(id="PET001"))[0].birth_date == date(2024, 10, 24)


# =============================================================================
# PATIENT READS
# =============================================================================

def test_find_patients_name_is_case_insensitive_substring(repository):
    repository.upsert_patient(make_patient())
    repository.upsert_patient(make_patient(patient_id="PET002", name="Guero"))

    found = repository.find_patients(PatientFilter(name_contains="luk"))
    assert [p.name for p in found] == ["Luke"]

    found = repository.find_patients(PatientFilter(name_contains="UKE"))
    assert [p.name for p in found] == ["Luke"]


def test_find_patients_name_matches_non_ascii(repository):
    repository.upsert_patient(make_patient(patient_id="PET002", name="Güero"))

    found = repository.find_patients(PatientFilter(name_contains="GÜE"))
    assert [p.id for p in found] == ["PET002"]


@pytest.mark.parametrize("stored, term, matches", [
    ("Straße", "STRAßE", True),
    ("Straße", "ss", False),
    ("Straße", "STRASSE", False),
    ("Émile", "éMI", True),
])
def test_find_patients_folds_case_the_same_on_both_backends(repository, stored, term, matches):
    repository.upsert_patient(make_patient(patient_id="PET003", name=stored))

    found = repository.find_patients(PatientFilter(name_contains=term))
    assert [p.id for p in found] == (["PET003"] if matches else [])


def test_find_patients_treats_wildcards_literally(repository):
    repository.upsert_patient(make_patient(patient_id="PET001", name="Luke"))
    repository.upsert_patient(make_patient(patient_id="PET002", name="50% Tom"))

    assert [p.id for p in repository.find_patients(PatientFilter(name_contains="%"))] == ["PET002"]
    assert repository.find_patients(PatientFilter(name_contains="L_ke")) == []
    assert repository.find_patients(PatientFilter(name_contains=".*")) == []


def test_find_patients_combines_filters(repository):
    repository.upsert_patient(make_patient(patient_id="PET001", name="Luke"))
    repository.upsert_patient(make_patient(patient_id="PET002", name="Lucky"))

    assert [p.id for p in repository.find_patients(PatientFilter(id="PET002", name_contains="lu"))] == ["PET002"]
    assert repository.find_patients(PatientFilter(id="PET001", name_contains="cky")) == []


def test_find_patients_without_filter_returns_all_sorted(repository):
    repository.upsert_patient(make_patient(patient_id="P3", name="Zoe"))
    repository.upsert_patient(make_patient(patient_id="P1", name="Ada"))
    repository.upsert_patient(make_patient(patient_id="P2", name="Max"))

    assert [p.name for p in repository.find_patients()] == ["Ada", "Max", "Zoe"]
    assert [p.name for p in repository.find_patients(PatientFilter(id="", name_contains=""))] == [
        "Ada", "Max", "Zoe"
    ]


# =============================================================================
# PATIENT DELETES
# =============================================================================

def test_delete_missing_patient_raises_not_found(repository):
    with pytest.raises(PatientNotFoundError) as exc_info:
        repository.delete_patient("PET404")

    assert isinstance(exc_info.value, NotFoundError)
    assert exc_info.value.status_code == 404


def test_delete_twice_succeeds_then_raises(repository):
    repository.upsert_patient(make_patient())

    repository.delete_patient("PET001")
    assert repository.find_patients(PatientFilter(id="PET001")) == []

    with pytest.raises(NotFoundError):
        repository.delete_patient("PET001")


def test_delete_removes_only_one_patient(repository):
    repository.upsert_patient(make_patient(patient_id="PET001"))
    repository.upsert_patient(make_patient(patient_id="PET002", name="Guero"))

    repository.delete_patient("PET001")

    assert [p.id for p in repository.find_patients()] == ["PET002"]


# =============================================================================
# CONSULTATIONS
# =============================================================================

def test_consultation_scenario_returns_owner_pet_name(repository, luke):
    """PET001 Luke with consultation C1 reads back joined with the live name."""
    repository.upsert_consultation(make_consultation())

    found = repository.find_consultations(ConsultationFilter(patient_id="PET001"))
    assert len(found) == 1
    consultation = found[0]
    assert consultation.consultation_id == "C1"
    assert consultation.owner_pet_name == "Luke"
    assert consultation.visit_date == date(2025, 1, 1)
    assert consultation.reason == "checkup"
    assert consultation.diagnosis == "healthy"
    assert consultation.patient_details == ""


def test_owner_pet_name_follows_patient_rename_but_snapshot_does_not(repository, luke):
    repository.upsert_consultation(make_consultation())
    repository.upsert_patient(make_patient(name="Lucas"))

    consultation = repository.find_consultations(ConsultationFilter(consultation_id="C1"))[0]
    assert consultation.owner_pet_name == "Lucas"
    assert consultation.patient_name == "Luke"


def test_owner_pet_name_is_none_after_patient_deleted(repository, luke):
    repository.upsert_consultation(make_consultation())

    repository.delete_patient("PET001")

    consultations = repository.find_consultations(ConsultationFilter(patient_id="PET001"))
    assert len(consultations) == 1
    assert consultations[0].owner_pet_name is None
    assert consultations[0].patient_name == "Luke"


def test_consultation_for_unknown_patient_is_stored(repository):
    created = repository.create_consultation(make_consultation(patient_id="PET999"))

    assert created.owner_pet_name is None
    assert len(repository.find_consultations()) == 1


def test_create_duplicate_consultation_raises(repository):
    repository.create_consultation(make_consultation())

    with pytest.raises(DuplicateConsultationError):
        repository.create_consultation(make_consultation(reason="other"))


def test_upsert_consultation_replaces_fields(repository, luke):
    first = repository.upsert_consultation(make_consultation())
    repository.upsert_consultation(make_consultation(diagnosis="otitis", patient_details="scratching"))

    found = repository.find_consultations(ConsultationFilter(consultation_id="C1"))
    assert len(found) == 1
    assert found[0].diagnosis == "otitis"
    assert found[0].patient_details == "scratching"
    assert found[0].created_at == first.created_at


def test_find_consultations_sorted_by_date_and_filtered(repository, luke):
    repository.upsert_consultation(make_consultation("C2", visit_date="2025-03-01"))
    repository.upsert_consultation(make_consultation("C1", visit_date="2025-01-01"))
    repository.upsert_consultation(make_consultation("C3", patient_id="PET002", visit_date="2025-02-01"))

    assert [c.consultation_id for c in repository.find_consultations()] == ["C1", "C3", "C2"]
    assert [
        c.consultation_id
        for c in repository.find_consultations(ConsultationFilter(patient_id="PET001"))
    ] == ["C1", "C2"]
    assert repository.find_consultations(ConsultationFilter(consultation_id="C9")) == []


def test_consultation_filters_are_and_combined(repository, luke):
    repository.upsert_consultation(make_consultation("C1", patient_id="PET001"))
    repository.upsert_consultation(make_consultation("C2", patient_id="PET002"))

    assert repository.find_consultations(ConsultationFilter(consultation_id="C1", patient_id="PET002")) == []
    assert [
        c.consultation_id
        for c in repository.find_consultations(ConsultationFilter(consultation_id="C1", patient_id="PET001"))
    ] == ["C1"]


@pytest.mark.parametrize("field", ["consultation_id", "patient_id", "reason", "diagnosis"])
def test_consultation_without_required_field_is_rejected(repository, field):
    with pytest.raises(ValidationError):
        repository.create_consultation(make_consultation(**{field: " "}))

    assert repository.find_consultations() == []


# =============================================================================
# LIFECYCLE
# =============================================================================

def test_ping_connects_lazily(repository, store):
    assert not store.connection.is_connected

    repository.ping()

    assert store.connection.is_connected
