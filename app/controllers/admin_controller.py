# app/controllers/admin_controller.py
"""
Admin entity management. Each handler is a thin store write followed by
commit_and_invalidate(), which evicts the cached views the write made stale.
"""
from flask import request
from sqlalchemy.exc import SQLAlchemyError

from app.errors import DataSourceUnavailable, NotFound, ValidationFailure
from app.extensions import cache, db
from app.helpers import api_response, require_fields
from app.models import Appointment, Caregiver, FamilyMember, Medication, Patient, Reminder
from app.models.reminder import PENDING
from app.services import cache_keys as keys
from app.services.invalidation import ChangeKind, commit_and_invalidate
from app.utils import clock
from app.utils.auth import role_required
from app.utils.parsing import parse_datetime, parse_optional_int, parse_time_schedule


# ---------------------------- helpers ----------------------------
def _get_or_404(model, obj_id, label):
    try:
        obj = db.session.get(model, obj_id)
    except SQLAlchemyError:
        db.session.rollback()
        raise DataSourceUnavailable(f"Could not load {label}")
    if obj is None:
        raise NotFound(f"{label} not found")
    return obj


def _list(query):
    try:
        return [row.to_dict() for row in query.all()]
    except SQLAlchemyError:
        db.session.rollback()
        raise DataSourceUnavailable("Could not load records")


def _payload(required=()):
    data = request.get_json() or {}
    missing = require_fields(data, required)
    if missing:
        raise ValidationFailure(f"Missing fields: {missing}")
    return data


def _normalize_assigned(raw):
    """Accept "1, 2" or [1, 2]; stored as the delimited text form."""
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        return ",".join(str(p).strip() for p in raw)
    return str(raw)


def _cached_list(key, query):
    cached = cache.get_json(key)
    if cached is not None:
        return cached
    rows = _list(query)
    cache.set_json(key, rows, keys.AGGREGATE_TTL)
    return rows


# ---------------------------- patients ----------------------------
@role_required("admin")
def list_patients():
    return api_response(True, "Patients loaded", _list(Patient.query.order_by(Patient.id)))


@role_required("admin")
def create_patient():
    data = _payload(required=("name",))
    patient = Patient(
        name=str(data["name"]).strip(),
        contact=data.get("contact"),
        medical_history=data.get("medical_history"),
    )
    db.session.add(patient)
    commit_and_invalidate(ChangeKind.PATIENT_CHANGED)
    return api_response(True, "Patient added!", {"id": patient.id}, status_code=201)


@role_required("admin")
def update_patient(patient_id):
    patient = _get_or_404(Patient, patient_id, "Patient")
    data = _payload()
    for field in ("name", "contact", "medical_history"):
        if field in data:
            setattr(patient, field, data[field])
    if not (patient.name or "").strip():
        raise ValidationFailure("name cannot be empty")
    commit_and_invalidate(ChangeKind.PATIENT_CHANGED)
    return api_response(True, "Patient updated!", patient.to_dict())


@role_required("admin")
def delete_patient(patient_id):
    patient = _get_or_404(Patient, patient_id, "Patient")
    db.session.delete(patient)  # cascades to medications, appointments, reminders
    commit_and_invalidate(ChangeKind.PATIENT_CHANGED)
    return api_response(True, "Patient removed!")


# ---------------------------- caregivers / family ----------------------------
def _create_assignee(model, kind, label):
    data = _payload(required=("name",))
    obj = model(
        name=str(data["name"]).strip(),
        contact=data.get("contact"),
        assigned_patients=_normalize_assigned(data.get("assigned_patients")),
    )
    db.session.add(obj)
    commit_and_invalidate(kind)
    return api_response(True, f"{label} added!", {"id": obj.id}, status_code=201)


def _update_assignee(model, obj_id, kind, label):
    obj = _get_or_404(model, obj_id, label)
    data = _payload()
    if "name" in data:
        obj.name = data["name"]
    if "contact" in data:
        obj.contact = data["contact"]
    if "assigned_patients" in data:
        obj.assigned_patients = _normalize_assigned(data["assigned_patients"])
    if not (obj.name or "").strip():
        raise ValidationFailure("name cannot be empty")
    commit_and_invalidate(kind)
    return api_response(True, f"{label} updated!", obj.to_dict())


def _delete_assignee(model, obj_id, kind, label):
    obj = _get_or_404(model, obj_id, label)
    db.session.delete(obj)
    commit_and_invalidate(kind)
    return api_response(True, f"{label} removed!")


@role_required("admin")
def list_caregivers():
    rows = _cached_list(keys.CAREGIVER_LIST_KEY, Caregiver.query.order_by(Caregiver.id))
    return api_response(True, "Caregivers loaded", rows)


@role_required("admin")
def create_caregiver():
    return _create_assignee(Caregiver, ChangeKind.CAREGIVER_CHANGED, "Caregiver")


@role_required("admin")
def update_caregiver(caregiver_id):
    return _update_assignee(Caregiver, caregiver_id, ChangeKind.CAREGIVER_CHANGED, "Caregiver")


@role_required("admin")
def delete_caregiver(caregiver_id):
    return _delete_assignee(Caregiver, caregiver_id, ChangeKind.CAREGIVER_CHANGED, "Caregiver")


@role_required("admin")
def list_family():
    rows = _cached_list(keys.FAMILY_LIST_KEY, FamilyMember.query.order_by(FamilyMember.id))
    return api_response(True, "Family members loaded", rows)


@role_required("admin")
def create_family_member():
    return _create_assignee(FamilyMember, ChangeKind.FAMILY_CHANGED, "Family member")


@role_required("admin")
def update_family_member(family_id):
    return _update_assignee(FamilyMember, family_id, ChangeKind.FAMILY_CHANGED, "Family member")


@role_required("admin")
def delete_family_member(family_id):
    return _delete_assignee(FamilyMember, family_id, ChangeKind.FAMILY_CHANGED, "Family member")


# ---------------------------- appointments ----------------------------
@role_required("admin")
def list_appointments():
    query = Appointment.query.order_by(Appointment.date_time, Appointment.id)
    return api_response(True, "Appointments loaded", _list(query))


@role_required("admin")
def create_appointment():
    data = _payload(required=("patient_id", "date_time"))
    patient_id = parse_optional_int(data.get("patient_id"), "patient_id")
    caregiver_id = parse_optional_int(data.get("caregiver_id"), "caregiver_id")
    date_time = parse_datetime(data.get("date_time"))

    _get_or_404(Patient, patient_id, "Patient")
    if caregiver_id is not None:
        _get_or_404(Caregiver, caregiver_id, "Caregiver")

    appt = Appointment(
        patient_id=patient_id,
        caregiver_id=caregiver_id,
        date_time=date_time,
        description=data.get("description"),
    )
    db.session.add(appt)
    commit_and_invalidate(ChangeKind.APPOINTMENT_CHANGED)
    return api_response(True, "Appointment added!", {"id": appt.id}, status_code=201)


@role_required("admin")
def delete_appointment(appointment_id):
    appt = _get_or_404(Appointment, appointment_id, "Appointment")
    db.session.delete(appt)
    commit_and_invalidate(ChangeKind.APPOINTMENT_CHANGED)
    return api_response(True, "Appointment removed!")


# ---------------------------- medications ----------------------------
@role_required("admin")
def list_medications():
    query = Medication.query.order_by(Medication.id)
    patient_id = request.args.get("patient_id", type=int)
    if patient_id is not None:
        query = query.filter_by(patient_id=patient_id)
    return api_response(True, "Medications loaded", _list(query))


@role_required("admin")
def create_medication():
    data = _payload(required=("patient_id", "drug_name", "time_schedule"))
    patient_id = parse_optional_int(data.get("patient_id"), "patient_id")
    parse_time_schedule(data["time_schedule"])
    _get_or_404(Patient, patient_id, "Patient")

    med = Medication(
        patient_id=patient_id,
        drug_name=str(data["drug_name"]).strip(),
        dosage=data.get("dosage"),
        time_schedule=str(data["time_schedule"]).strip(),
    )
    db.session.add(med)
    commit_and_invalidate(ChangeKind.MEDICATION_CHANGED)
    return api_response(True, "Medication added!", {"id": med.id}, status_code=201)


@role_required("admin")
def update_medication(medication_id):
    med = _get_or_404(Medication, medication_id, "Medication")
    data = _payload()
    if "time_schedule" in data:
        new_times = parse_time_schedule(data["time_schedule"])
        try:
            old_times = med.dose_times()
        except ValidationFailure:
            old_times = None
        if new_times != old_times:
            now = clock.now()
            med.time_schedule = str(data["time_schedule"]).strip()
            med.effective_from = now
            # upcoming reminders for the old dose times would otherwise be swept as missed
            Reminder.query.filter(
                Reminder.medication_id == med.id,
                Reminder.status == PENDING,
                Reminder.alert_time >= now,
            ).delete(synchronize_session=False)
    if "drug_name" in data:
        if not (data["drug_name"] or "").strip():
            raise ValidationFailure("drug_name cannot be empty")
        med.drug_name = data["drug_name"].strip()
    if "dosage" in data:
        med.dosage = data["dosage"]
    commit_and_invalidate(ChangeKind.MEDICATION_CHANGED)
    return api_response(True, "Medication updated!", med.to_dict())


@role_required("admin")
def delete_medication(medication_id):
    med = _get_or_404(Medication, medication_id, "Medication")
    db.session.delete(med)  # cascades to its reminders
    commit_and_invalidate(ChangeKind.MEDICATION_CHANGED)
    return api_response(True, "Medication removed!")
