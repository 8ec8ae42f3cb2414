# app/services/report_service.py
import logging

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError

from app.errors import DataSourceUnavailable
from app.extensions import cache, db
from app.models import Patient, Reminder
from app.models.reminder import DONE, MISSED
from app.services import cache_keys as keys

logger = logging.getLogger(__name__)


def build_adherence_report():
    """Per-patient reminder totals, missed count and DONE percentage."""
    total = func.count(Reminder.id)
    missed = func.coalesce(func.sum(case((Reminder.status == MISSED, 1), else_=0)), 0)
    done = func.coalesce(func.sum(case((Reminder.status == DONE, 1), else_=0)), 0)
    try:
        rows = (
            db.session.query(Patient.id, Patient.name, total, missed, done)
            .outerjoin(Reminder, Reminder.patient_id == Patient.id)
            .group_by(Patient.id, Patient.name)
            .order_by(Patient.id)
            .all()
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Adherence report query failed: %s", e)
        raise DataSourceUnavailable("Report data unavailable")

    report = []
    for pid, name, total_count, missed_count, done_count in rows:
        report.append({
            "patient_id": pid,
            "name": name,
            "total_reminders": int(total_count),
            "missed_count": int(missed_count),
            "adherence_percent": round(int(done_count) / total_count * 100, 2) if total_count else None,
        })
    return report


def get_adherence_report():
    cached = cache.get_json(keys.ADMIN_REPORTS_KEY)
    if cached is not None:
        return cached
    report = build_adherence_report()
    cache.set_json(keys.ADMIN_REPORTS_KEY, report, keys.REPORT_TTL)
    return report
