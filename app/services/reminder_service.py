# app/services/reminder_service.py
"""
Reminder lifecycle: generation, user acknowledgement and the missed sweep.

Reminders are created by the sweep, never by a read. Each cycle first creates
a PENDING reminder for every dose today and tomorrow that has none yet and
falls on or after the medication's effective_from, then flips every PENDING
reminder whose alert time has passed to MISSED in one conditional UPDATE.
Generating a day ahead means a dose is on record before its time comes, so
midnight doses and doses that fall into a gap between cycles still reach
MISSED. The status predicate is part of the UPDATE, so a reminder a user
marked DONE in the meantime is left alone.
"""
import logging
import threading
from collections import namedtuple
from datetime import timedelta

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.errors import DataSourceUnavailable, NotFound, ServiceError
from app.extensions import db
from app.models import Medication, Reminder
from app.models.reminder import DONE, MISSED, PENDING
from app.services.invalidation import ChangeKind, commit_and_invalidate, invalidate
from app.services.schedule_service import day_bounds
from app.utils import clock as app_clock

logger = logging.getLogger(__name__)

SweepResult = namedtuple("SweepResult", ["generated", "missed", "invalidated", "ok"])


GENERATION_DAYS = 2


def generate_due_reminders(now):
    """
    Create missing reminders for today's and tomorrow's doses, skipping any
    dose earlier than its medication's effective_from. Past doses created here
    are swept to MISSED by the same cycle. Returns how many were added.
    """
    start, _ = day_bounds(now.date())
    end = start + timedelta(days=GENERATION_DAYS)

    existing = {
        (mid, at) for mid, at in
        db.session.query(Reminder.medication_id, Reminder.alert_time)
        .filter(Reminder.alert_time >= start, Reminder.alert_time < end)
        .all()
    }

    created = 0
    for med in Medication.query.order_by(Medication.id).all():
        try:
            times = med.dose_times()
        except ServiceError:
            logger.warning("Skipping medication %s with unreadable time_schedule %r", med.id, med.time_schedule)
            continue
        effective_from = med.effective_from or start
        for offset in range(GENERATION_DAYS):
            day = start + timedelta(days=offset)
            for dose_time in times:
                alert_time = day.replace(hour=dose_time.hour, minute=dose_time.minute, second=dose_time.second)
                if alert_time < effective_from or (med.id, alert_time) in existing:
                    continue
                db.session.add(Reminder(
                    patient_id=med.patient_id,
                    medication_id=med.id,
                    alert_time=alert_time,
                    status=PENDING,
                ))
                created += 1

    if created:
        try:
            db.session.commit()
        except IntegrityError:
            # another worker generated the same doses first
            db.session.rollback()
            logger.info("Reminder generation raced with another writer; retrying next cycle")
            return 0
    return created


def mark_missed(now):
    """PENDING reminders past their alert time -> MISSED, as one statement."""
    result = db.session.execute(
        update(Reminder)
        .where(Reminder.status == PENDING, Reminder.alert_time < now)
        .values(status=MISSED)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    return result.rowcount or 0


def get_reminder(reminder_id):
    try:
        reminder = db.session.get(Reminder, reminder_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Loading reminder %s failed: %s", reminder_id, e)
        raise DataSourceUnavailable("Reminder store unavailable")
    if reminder is None:
        raise NotFound(f"Reminder {reminder_id} not found")
    return reminder


def mark_reminder_done(reminder_id):
    """
    PENDING -> DONE. Marking an already DONE or MISSED reminder is accepted
    and changes nothing. Either way the reminder views are invalidated.
    Returns (reminder, changed).
    """
    try:
        result = db.session.execute(
            update(Reminder)
            .where(Reminder.id == reminder_id, Reminder.status == PENDING)
            .values(status=DONE)
            .execution_options(synchronize_session=False)
        )
        changed = (result.rowcount or 0) > 0
        reminder = db.session.get(Reminder, reminder_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Marking reminder %s done failed: %s", reminder_id, e)
        raise DataSourceUnavailable("Reminder store unavailable")

    if reminder is None:
        db.session.rollback()
        raise NotFound(f"Reminder {reminder_id} not found")

    commit_and_invalidate(ChangeKind.REMINDER_STATUS_CHANGED)
    return reminder, changed


class ReminderSweep:
    """One sweep cycle. `clock` and `invalidator` are injectable for tests."""

    def __init__(self, clock=None, invalidator=invalidate):
        self.clock = clock or app_clock.now
        self.invalidator = invalidator

    def run_once(self):
        now = self.clock()
        ok = True
        generated = missed = 0

        try:
            generated = generate_due_reminders(now)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Reminder generation failed; will retry next cycle")
            ok = False

        try:
            missed = mark_missed(now)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Missed-reminder sweep failed; will retry next cycle")
            ok = False

        invalidated = False
        if generated or missed:
            self.invalidator(ChangeKind.REMINDER_STATUS_CHANGED)
            invalidated = True

        logger.info("Reminder sweep at %s: %d generated, %d missed", now.isoformat(sep=" "), generated, missed)
        return SweepResult(generated, missed, invalidated, ok)


class ReminderSweepRunner:
    """Runs a ReminderSweep every `interval` seconds on a daemon thread."""

    def __init__(self, app, sweep, interval=60):
        self.app = app
        self.sweep = sweep
        self.interval = interval
        self.stop_event = threading.Event()
        self.thread = None

    def start(self):
        if self.thread and self.thread.is_alive():
            return
        self.stop_event.clear()
        self.thread = threading.Thread(target=self._loop, name="reminder-sweep", daemon=True)
        self.thread.start()
        logger.info("Reminder sweep started (every %ss)", self.interval)

    def stop(self, timeout=5):
        self.stop_event.set()
        if self.thread:
            self.thread.join(timeout)

    def tick(self):
        with self.app.app_context():
            try:
                return self.sweep.run_once()
            except Exception:
                logger.exception("Reminder sweep cycle crashed")
                return None

    def _loop(self):
        while not self.stop_event.wait(self.interval):
            self.tick()
