from datetime import datetime

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from app.extensions import cache, db
from app.models import Appointment, Caregiver, FamilyMember, Medication, Patient, Reminder
from app.models.reminder import PENDING

NOW = datetime(2026, 3, 10, 12, 0, 0)


class FailingBackend:
    """Cache backend whose every call fails like an unreachable Redis."""

    def _fail(self, *args, **kwargs):
        from app.errors import CacheUnavailable
        raise CacheUnavailable("connection refused")

    get = set = delete = keys = delete_many = ttl = _fail


class Factory:
    def patient(self, name="Ada", **kw):
        p = Patient(name=name, **kw)
        db.session.add(p)
        db.session.commit()
        return p

    def medication(self, patient, time_schedule="08:00", drug_name="Metformin", dosage="500 mg", **kw):
        m = Medication(patient_id=patient.id, drug_name=drug_name, dosage=dosage, time_schedule=time_schedule, **kw)
        db.session.add(m)
        db.session.commit()
        return m

    def reminder(self, medication, alert_time, status=PENDING):
        r = Reminder(patient_id=medication.patient_id, medication_id=medication.id,
                     alert_time=alert_time, status=status)
        db.session.add(r)
        db.session.commit()
        return r

    def appointment(self, patient, date_time, description="Checkup", caregiver=None):
        a = Appointment(patient_id=patient.id, date_time=date_time, description=description,
                        caregiver_id=caregiver.id if caregiver else None)
        db.session.add(a)
        db.session.commit()
        return a

    def caregiver(self, assigned_patients="", name="Carl"):
        c = Caregiver(name=name, assigned_patients=assigned_patients)
        db.session.add(c)
        db.session.commit()
        return c

    def family(self, assigned_patients="", name="Fay"):
        f = FamilyMember(name=name, assigned_patients=assigned_patients)
        db.session.add(f)
        db.session.commit()
        return f


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "REDIS_URL": None,
        "REMINDER_SWEEP_ENABLED": False,
        "SCHEDULE_FANOUT_WORKERS": 1,
        "JWT_SECRET_KEY": "test-secret-key-with-at-least-32-bytes!",
        "CLOCK": lambda: NOW,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def factory(app):
    return Factory()


@pytest.fixture
def store(app):
    return cache


@pytest.fixture
def auth(app):
    def headers(role="admin", linked_id=None):
        token = create_access_token(identity="1", additional_claims={"role": role, "linked_id": linked_id})
        return {"Authorization": f"Bearer {token}"}
    return headers


@pytest.fixture
def failing_cache(store):
    original = store.backend
    store.use_backend(FailingBackend())
    yield store
    store.use_backend(original)
