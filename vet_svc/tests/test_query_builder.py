"""
Tests for the parameterized WHERE-clause builder and the Mongo query shapes.
"""
import pytest

from repositories import ConsultationFilter, PatientFilter
from repositories.mongo_store import MongoRecordStore
from repositories.query_builder import SqlFilter, escape_like


def test_empty_filter_renders_nothing():
    where = SqlFilter()
    assert not where
    assert where.render() == ("", [])


def test_none_values_are_skipped():
    where = SqlFilter().equals("id", None).contains("name", None)
    assert where.render() == ("", [])


def test_clauses_are_and_combined_with_bound_params():
    sql, params = SqlFilter().equals("c.patient_id", "PET001").contains("p.name", "Luk").render()

    assert sql == " WHERE c.patient_id = ? AND unicode_lower(p.name) LIKE ? ESCAPE '\\'"
    assert params == ["PET001", "%luk%"]


def test_values_never_appear_in_sql_text():
    hostile = "x'; DROP TABLE patients; --"
    sql, params = SqlFilter().equals("id", hostile).contains("name", hostile).render()

    assert hostile not in sql
    assert "DROP" not in sql
    assert params[0] == hostile


@pytest.mark.parametrize("column", ["name; --", "1name", "p.name.x", "name = name"])
def test_invalid_column_reference_is_refused(column):
    with pytest.raises(ValueError):
        SqlFilter().equals(column, "x")


@pytest.mark.parametrize("term,expected", [
    ("luke", "luke"),
    ("50%", "50\\%"),
    ("a_b", "a\\_b"),
    ("back\\slash", "back\\\\slash"),
])
def test_escape_like(term, expected):
    assert escape_like(term) == expected


def test_blank_filter_values_become_none():
    assert PatientFilter(id="  ", name_contains="") == PatientFilter()
    assert ConsultationFilter(consultation_id="", patient_id=" PET001 ").patient_id == "PET001"


def test_mongo_patient_query_escapes_regex():
    query = MongoRecordStore.patient_query(PatientFilter(id="PET001", name_contains="a.b"))

    assert query == {"id": "PET001", "name": {"$regex": "a\\.b", "$options": "i"}}


def test_mongo_consultation_pipeline_is_left_outer_join():
    pipeline = MongoRecordStore.consultation_pipeline(ConsultationFilter(patient_id="PET001"))

    stages = [next(iter(stage)) for stage in pipeline]
    assert stages == ["$match", "$lookup", "$unwind", "$addFields", "$project", "$sort"]
    assert pipeline[0] == {"$match": {"patient_id": "PET001"}}
    assert pipeline[2]["$unwind"]["preserveNullAndEmptyArrays"] is True


def test_mongo_consultation_pipeline_without_filter_has_no_match():
    pipeline = MongoRecordStore.consultation_pipeline(ConsultationFilter())

    assert "$match" not in pipeline[0]
