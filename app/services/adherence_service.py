# app/services/adherence_service.py
"""
Rule-based adherence risk.

risk = sigmoid(missed_rate_last_7 * total_reminders * K), rounded to two
decimals, over the patient's reminders from the last 30 days. Fewer than
MIN_REMINDERS reminders is a cold start and gets the neutral default.
"""
import logging
import math
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from app.errors import DataSourceUnavailable
from app.extensions import cache, db
from app.models import Reminder
from app.models.reminder import MISSED
from app.services import cache_keys as keys
from app.utils import clock

logger = logging.getLogger(__name__)

WINDOW_DAYS = 30
MIN_REMINDERS = 10
TAIL = 7
K = 0.1

HIGH_RISK = 0.7
MEDIUM_RISK = 0.4

DEFAULT_TIP = "Start tracking more reminders for better insights!"
HIGH_RISK_TIP = "High risk! Pair Metformin with your morning walk for better routine."
MEDIUM_RISK_TIP = "Medium risk. Set a phone alarm 10 mins early."
LOW_RISK_TIP = "Great job! Keep the streak—reward yourself with a favorite tea."


def cold_start():
    return {"risk": 0.5, "tip": DEFAULT_TIP}


def tip_for(risk):
    if risk > HIGH_RISK:
        return HIGH_RISK_TIP
    if risk > MEDIUM_RISK:
        return MEDIUM_RISK_TIP
    return LOW_RISK_TIP


def score(statuses):
    """`statuses` is the chronological list of reminder statuses in the window."""
    total = len(statuses)
    if total < MIN_REMINDERS:
        return cold_start()

    tail = statuses[-TAIL:]
    missed_rate = sum(1 for s in tail if s == MISSED) / len(tail) if tail else 0.0
    linear = missed_rate * total * K
    risk = round(1 / (1 + math.exp(-linear)), 2)
    return {"risk": risk, "tip": tip_for(risk)}


def recent_statuses(patient_id, now):
    since = now - timedelta(days=WINDOW_DAYS)
    try:
        rows = (
            db.session.query(Reminder.status)
            .filter(Reminder.patient_id == patient_id, Reminder.alert_time >= since)
            .order_by(Reminder.alert_time, Reminder.id)
            .all()
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        raise DataSourceUnavailable(f"Reminder history unavailable: {e}")
    return [status for (status,) in rows]


def predict_adherence(patient_id):
    """
    Cache-aside prediction. Any failure to compute yields the cold-start
    default, which is not cached.
    """
    key = keys.adherence_key(patient_id)
    cached = cache.get_json(key)
    if cached is not None:
        return cached

    try:
        prediction = score(recent_statuses(patient_id, clock.now()))
    except Exception:
        logger.exception("Adherence prediction failed for patient %s; using fallback", patient_id)
        return cold_start()

    cache.set_json(key, prediction, keys.ADHERENCE_TTL)
    return prediction
