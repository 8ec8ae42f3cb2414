# app/services/schedule_service.py
"""
Daily schedule materialization and the cache-aside reads built on it.

A schedule is the list of today's medication doses and appointments for one
patient, ordered by time. Doses carry the reminder generated for them, if
any; a dose without a reminder still shows up as PENDING with no
reminder_id. Caregiver and family views are aggregates of the schedules of
their assigned patients.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from app.errors import DataSourceUnavailable, NotFound, ServiceError
from app.extensions import cache, db
from app.models import Appointment, Medication, Patient, Reminder
from app.models.reminder import PENDING
from app.services import cache_keys as keys
from app.utils import clock

logger = logging.getLogger(__name__)

APPOINTMENT_STATUS = "SCHEDULED"

_KIND_ORDER = {"medication": 0, "appointment": 1}


def day_bounds(day):
    start = datetime.combine(day, datetime.min.time())
    return start, start + timedelta(days=1)


def _medication_entry(med, dose_time, reminder):
    return {
        "kind": "medication",
        "time": dose_time.strftime("%H:%M:%S"),
        "medication_id": med.id,
        "drug_name": med.drug_name,
        "dosage": med.dosage,
        "appointment_id": None,
        "caregiver_id": None,
        "description": None,
        "status": reminder.status if reminder else PENDING,
        "reminder_id": reminder.id if reminder else None,
    }


def _appointment_entry(appt):
    return {
        "kind": "appointment",
        "time": appt.date_time.strftime("%H:%M:%S"),
        "medication_id": None,
        "drug_name": None,
        "dosage": None,
        "appointment_id": appt.id,
        "caregiver_id": appt.caregiver_id,
        "description": appt.description,
        "status": APPOINTMENT_STATUS,
        "reminder_id": None,
    }


def generate_daily_schedule(patient_id, day=None):
    """
    Build today's schedule for `patient_id` straight from the entity store.

    Raises NotFound if the patient does not exist and DataSourceUnavailable if
    the store fails. A patient with nothing due today gets an empty list.
    """
    day = day or clock.now().date()
    start, end = day_bounds(day)
    try:
        patient = db.session.get(Patient, patient_id)
        if patient is None:
            raise NotFound(f"Patient {patient_id} not found")

        medications = Medication.query.filter_by(patient_id=patient_id).order_by(Medication.id).all()
        reminders = (
            Reminder.query
            .filter(Reminder.patient_id == patient_id,
                    Reminder.alert_time >= start,
                    Reminder.alert_time < end)
            .all()
        )
        appointments = (
            Appointment.query
            .filter(Appointment.patient_id == patient_id,
                    Appointment.date_time >= start,
                    Appointment.date_time < end)
            .order_by(Appointment.id)
            .all()
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Schedule query failed for patient %s: %s", patient_id, e)
        raise DataSourceUnavailable("Schedule data unavailable")

    by_dose = {(r.medication_id, r.alert_time): r for r in reminders}

    entries = []
    for med in medications:
        try:
            times = med.dose_times()
        except ServiceError:
            # rows written before validation existed; skip rather than fail the whole day
            logger.warning("Medication %s has unreadable time_schedule %r", med.id, med.time_schedule)
            continue
        for dose_time in times:
            reminder = by_dose.get((med.id, datetime.combine(day, dose_time)))
            entries.append(_medication_entry(med, dose_time, reminder))
    entries.extend(_appointment_entry(a) for a in appointments)

    entries.sort(key=lambda e: (e["time"], _KIND_ORDER[e["kind"]], e["medication_id"] or e["appointment_id"]))
    return entries


def get_schedule(patient_id):
    """Cache-aside read of one patient's schedule."""
    key = keys.schedule_key(patient_id)
    cached = cache.get_json(key)
    if cached is not None:
        return cached

    schedule = generate_daily_schedule(patient_id)
    if not cache.set_json(key, schedule, keys.SCHEDULE_TTL):
        logger.warning("Serving uncached schedule for patient %s", patient_id)
    return schedule


# ---------------------------- aggregates ----------------------------
def _materialize_in_context(app, patient_id):
    with app.app_context():
        return get_schedule(patient_id)


def _materialize_many(patient_ids):
    """
    Materialize every patient's schedule, concurrently when configured.
    Returns {patient_id: (schedule, error)}; a patient that fails or times out
    gets an error instead of a schedule.
    """
    workers = current_app.config.get("SCHEDULE_FANOUT_WORKERS", 1)
    outcomes = {}

    if workers <= 1 or len(patient_ids) <= 1:
        for pid in patient_ids:
            try:
                outcomes[pid] = (get_schedule(pid), None)
            except ServiceError as e:
                outcomes[pid] = (None, e)
        return outcomes

    app = current_app._get_current_object()
    timeout = current_app.config.get("SCHEDULE_FANOUT_TIMEOUT_SECS", 10)
    executor = ThreadPoolExecutor(max_workers=min(workers, len(patient_ids)), thread_name_prefix="schedule-fanout")
    try:
        futures = {executor.submit(_materialize_in_context, app, pid): pid for pid in patient_ids}
        done, not_done = wait(futures, timeout=timeout)
        for fut in done:
            pid = futures[fut]
            try:
                outcomes[pid] = (fut.result(), None)
            except ServiceError as e:
                outcomes[pid] = (None, e)
            except Exception as e:
                logger.exception("Schedule materialization crashed for patient %s", pid)
                outcomes[pid] = (None, e)
        for fut in not_done:
            outcomes[futures[fut]] = (None, DataSourceUnavailable(f"timed out after {timeout}s"))
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
    return outcomes


def build_aggregate(patient_ids):
    """
    Aggregate schedules for several patients, in assignment order.
    Patients that fail, do not exist, or have nothing today are left out.
    Returns (aggregate, {patient_id: error}).
    """
    outcomes = _materialize_many(patient_ids)
    failures = {}
    aggregate = []
    for pid in patient_ids:
        schedule, error = outcomes[pid]
        if error is not None:
            failures[pid] = error
            logger.warning("Excluding patient %s from aggregate: %s", pid, error)
        elif schedule:
            aggregate.append({"patient_id": pid, "schedule": schedule})
    return aggregate, failures


def get_assigned_schedules(model, owner_id, key):
    """
    Cache-aside aggregate for a caregiver or family member (`model`).
    An aggregate missing a patient because of a transient failure is returned
    but not cached, so the next read retries that patient.
    """
    cached = cache.get_json(key)
    if cached is not None:
        return cached

    try:
        owner = db.session.get(model, owner_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Lookup of %s %s failed: %s", model.__name__, owner_id, e)
        raise DataSourceUnavailable("Assignment data unavailable")
    if owner is None:
        raise NotFound(f"{model.__name__} {owner_id} not found")

    aggregate, failures = build_aggregate(owner.patient_ids())
    if all(isinstance(e, NotFound) for e in failures.values()):
        cache.set_json(key, aggregate, keys.AGGREGATE_TTL)
    return aggregate
