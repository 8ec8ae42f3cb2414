# app/controllers/schedule_controller.py
"""
Read views for patients, caregivers, family members and admins, plus the
one user write on this surface: acknowledging a reminder.
"""
from app.helpers import api_response
from app.models import Caregiver, FamilyMember
from app.services import adherence_service, report_service, schedule_service
from app.services import cache_keys as keys
from app.services.reminder_service import get_reminder, mark_reminder_done
from app.utils.auth import can_view, current_claims, role_required
from app.extensions import db

ALL_ROLES = ("patient", "caregiver", "family", "admin")


def _may_view_patient(patient_id):
    role, linked_id = current_claims()
    if role == "admin":
        return True
    if role == "patient":
        return linked_id == patient_id
    model = Caregiver if role == "caregiver" else FamilyMember
    owner = db.session.get(model, linked_id) if linked_id is not None else None
    return owner is not None and patient_id in owner.patient_ids()


@role_required(*ALL_ROLES)
def get_patient_schedule(patient_id):
    if not _may_view_patient(patient_id):
        return api_response(False, "Access denied", status_code=403)
    schedule = schedule_service.get_schedule(patient_id)
    return api_response(True, "Schedule loaded", schedule)


@role_required("caregiver", "admin")
def get_caregiver_schedule(caregiver_id):
    if not can_view("caregiver", caregiver_id):
        return api_response(False, "Access denied", status_code=403)
    aggregate = schedule_service.get_assigned_schedules(Caregiver, caregiver_id, keys.caregiver_key(caregiver_id))
    return api_response(True, "Caregiver schedule loaded", aggregate)


@role_required("family", "admin")
def get_family_schedule(family_id):
    if not can_view("family", family_id):
        return api_response(False, "Access denied", status_code=403)
    aggregate = schedule_service.get_assigned_schedules(FamilyMember, family_id, keys.family_key(family_id))
    return api_response(True, "Family schedule loaded", aggregate)


@role_required("patient", "caregiver", "admin")
def mark_done(reminder_id):
    if not _may_view_patient(get_reminder(reminder_id).patient_id):
        return api_response(False, "Access denied", status_code=403)
    reminder, changed = mark_reminder_done(reminder_id)
    message = "Marked as done!" if changed else f"Reminder already {reminder.status.lower()}"
    return api_response(True, message, reminder.to_dict())


@role_required(*ALL_ROLES)
def predict_adherence(patient_id):
    if not _may_view_patient(patient_id):
        return api_response(False, "Access denied", status_code=403)
    return api_response(True, "Prediction ready", adherence_service.predict_adherence(patient_id))


@role_required("admin")
def get_reports():
    return api_response(True, "Report ready", report_service.get_adherence_report())
