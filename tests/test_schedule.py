import json
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.errors import DataSourceUnavailable, NotFound
from app.extensions import db
from app.models import Caregiver
from app.models.reminder import DONE
from app.services import schedule_service
from conftest import NOW

TODAY = NOW.date()


def at(hour, minute=0, day=TODAY):
    return datetime.combine(day, datetime.min.time()).replace(hour=hour, minute=minute)


def test_schedule_is_ordered_and_limited_to_today(factory):
    patient = factory.patient()
    evening = factory.medication(patient, "20:00", drug_name="Atorvastatin")
    morning = factory.medication(patient, "08:00", drug_name="Metformin")
    factory.appointment(patient, at(14, 30), description="Cardiology")
    factory.appointment(patient, at(9, day=TODAY + timedelta(days=1)), description="Tomorrow")

    schedule = schedule_service.generate_daily_schedule(patient.id)

    assert [(e["kind"], e["time"]) for e in schedule] == [
        ("medication", "08:00:00"),
        ("appointment", "14:30:00"),
        ("medication", "20:00:00"),
    ]
    assert schedule[0]["medication_id"] == morning.id
    assert schedule[2]["medication_id"] == evening.id
    assert schedule[1]["description"] == "Cardiology"


def test_dose_without_reminder_still_listed(factory):
    patient = factory.patient()
    med = factory.medication(patient, "08:00, 18:00")
    reminder = factory.reminder(med, at(18), status=DONE)

    schedule = schedule_service.generate_daily_schedule(patient.id)

    assert schedule[0]["reminder_id"] is None
    assert schedule[0]["status"] == "PENDING"
    assert schedule[1]["reminder_id"] == reminder.id
    assert schedule[1]["status"] == "DONE"


def test_yesterdays_reminder_is_not_joined(factory):
    patient = factory.patient()
    med = factory.medication(patient, "08:00")
    factory.reminder(med, at(8, day=TODAY - timedelta(days=1)), status=DONE)

    [entry] = schedule_service.generate_daily_schedule(patient.id)
    assert entry["reminder_id"] is None


def test_unknown_patient_is_not_found(app):
    with pytest.raises(NotFound):
        schedule_service.generate_daily_schedule(999)


def test_patient_with_nothing_today_gets_empty_schedule(factory):
    patient = factory.patient()
    assert schedule_service.generate_daily_schedule(patient.id) == []


def test_store_failure_is_data_source_unavailable(factory, monkeypatch):
    patient = factory.patient()

    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("server closed the connection"))

    monkeypatch.setattr(db.session, "get", broken)
    with pytest.raises(DataSourceUnavailable):
        schedule_service.generate_daily_schedule(patient.id)


def test_cached_schedule_served_until_invalidated(factory, store):
    patient = factory.patient()
    factory.medication(patient, "08:00")

    first = schedule_service.get_schedule(patient.id)
    raw = store.get(f"schedule:{patient.id}")
    assert json.loads(raw) == first
    assert store.ttl(f"schedule:{patient.id}") == pytest.approx(3600, abs=5)

    # written behind the cache's back: the cached copy keeps being served
    factory.medication(patient, "21:00")
    assert schedule_service.get_schedule(patient.id) == first
    assert store.get(f"schedule:{patient.id}") == raw


def test_cache_outage_falls_through_to_store(factory, failing_cache):
    patient = factory.patient()
    factory.medication(patient, "08:00")
    schedule = schedule_service.get_schedule(patient.id)
    assert len(schedule) == 1


def test_schedule_endpoint(client, auth, factory):
    patient = factory.patient()
    factory.medication(patient, "08:00")

    resp = client.get(f"/api/v1/schedule/{patient.id}", headers=auth("patient", patient.id))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"][0]["drug_name"] == "Metformin"


def test_schedule_endpoint_role_scoping(client, auth, factory):
    patient = factory.patient()
    other = factory.patient(name="Bob")
    caregiver = factory.caregiver(assigned_patients=str(patient.id))

    assert client.get(f"/api/v1/schedule/{other.id}", headers=auth("patient", patient.id)).status_code == 403
    assert client.get(f"/api/v1/schedule/{patient.id}", headers=auth("caregiver", caregiver.id)).status_code == 200
    assert client.get(f"/api/v1/schedule/{other.id}", headers=auth("caregiver", caregiver.id)).status_code == 403
    assert client.get(f"/api/v1/schedule/{patient.id}").status_code == 401


def test_schedule_endpoint_not_found(client, auth):
    resp = client.get("/api/v1/schedule/424242", headers=auth())
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


# ---------------------------- aggregates ----------------------------
def _patients(factory, n):
    return [factory.patient(name=f"P{i}") for i in range(1, n + 1)]


def test_caregiver_aggregate_ignores_malformed_assignments(client, auth, factory, store):
    patients = _patients(factory, 7)
    factory.medication(patients[2], "08:00")   # id 3
    factory.medication(patients[6], "09:00")   # id 7
    factory.medication(patients[4], "10:00")   # id 5, not assigned
    caregiver = factory.caregiver(assigned_patients="3, abc, ,7")

    resp = client.get(f"/api/v1/caregivers/{caregiver.id}/schedule", headers=auth("caregiver", caregiver.id))

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert [item["patient_id"] for item in data] == [3, 7]
    assert store.get_json(f"caregiver:{caregiver.id}") == data
    assert store.ttl(f"caregiver:{caregiver.id}") == pytest.approx(1800, abs=5)


def test_aggregate_excludes_empty_and_missing_patients(factory):
    patients = _patients(factory, 2)
    factory.medication(patients[0], "08:00")
    aggregate, failures = schedule_service.build_aggregate([patients[0].id, patients[1].id, 99])

    assert [item["patient_id"] for item in aggregate] == [patients[0].id]
    assert list(failures) == [99]
    assert isinstance(failures[99], NotFound)


def test_aggregate_with_transient_failure_is_not_cached(factory, store, monkeypatch):
    patients = _patients(factory, 2)
    factory.medication(patients[0], "08:00")
    factory.medication(patients[1], "09:00")
    caregiver = factory.caregiver(assigned_patients=f"{patients[0].id},{patients[1].id}")

    real = schedule_service.generate_daily_schedule

    def flaky(patient_id, day=None):
        if patient_id == patients[1].id:
            raise DataSourceUnavailable("timeout")
        return real(patient_id, day)

    monkeypatch.setattr(schedule_service, "generate_daily_schedule", flaky)
    aggregate = schedule_service.get_assigned_schedules(Caregiver, caregiver.id, f"caregiver:{caregiver.id}")

    assert [item["patient_id"] for item in aggregate] == [patients[0].id]
    assert store.get(f"caregiver:{caregiver.id}") is None


def test_family_aggregate(client, auth, factory):
    patient = factory.patient()
    factory.appointment(patient, at(15))
    family = factory.family(assigned_patients=f" {patient.id} ,")

    resp = client.get(f"/api/v1/family/{family.id}/schedule", headers=auth("family", family.id))
    assert resp.status_code == 200
    [item] = resp.get_json()["data"]
    assert item["schedule"][0]["kind"] == "appointment"


def test_aggregate_owner_checks(client, auth, factory):
    family = factory.family(assigned_patients="")
    assert client.get("/api/v1/family/77/schedule", headers=auth()).status_code == 404
    assert client.get(f"/api/v1/family/{family.id}/schedule", headers=auth("family", family.id + 1)).status_code == 403
    assert client.get(f"/api/v1/family/{family.id}/schedule", headers=auth("patient", 1)).status_code == 403
    resp = client.get(f"/api/v1/family/{family.id}/schedule", headers=auth("family", family.id))
    assert resp.get_json()["data"] == []
