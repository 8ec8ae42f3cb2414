# app/services/invalidation.py
"""
Invalidation coordinator.

Every write that changes patients, medications, appointments, reminders,
caregivers or family members ends with one call into this module. The
table below is the only place that knows which derived views depend on
which entities. Eviction is prefix based: whole namespaces are dropped and
recomputed on the next read.

Invalidation runs after the commit and never fails the write. If it
cannot reach the cache, stale entries still expire through their TTL.
"""
import enum
import logging
from collections import namedtuple

from sqlalchemy.exc import SQLAlchemyError

from app.errors import CacheUnavailable, DataSourceUnavailable
from app.extensions import cache, db
from app.services import cache_keys as keys

logger = logging.getLogger(__name__)


class ChangeKind(enum.Enum):
    PATIENT_CHANGED = "PatientChanged"
    MEDICATION_CHANGED = "MedicationChanged"
    APPOINTMENT_CHANGED = "AppointmentChanged"
    REMINDER_STATUS_CHANGED = "ReminderStatusChanged"
    CAREGIVER_CHANGED = "CaregiverChanged"
    FAMILY_CHANGED = "FamilyChanged"


# caregiver/family aggregates embed patient schedules
_SCHEDULE_VIEWS = (keys.SCHEDULE_PREFIX, keys.CAREGIVER_PREFIX, keys.FAMILY_PREFIX)

EVICTION_TABLE = {
    ChangeKind.PATIENT_CHANGED: {
        "prefixes": _SCHEDULE_VIEWS + (keys.ADHERENCE_PREFIX,),
        "keys": (keys.ADMIN_REPORTS_KEY,),
    },
    ChangeKind.MEDICATION_CHANGED: {
        "prefixes": _SCHEDULE_VIEWS + (keys.ADHERENCE_PREFIX,),
        "keys": (keys.ADMIN_REPORTS_KEY,),
    },
    ChangeKind.APPOINTMENT_CHANGED: {
        "prefixes": _SCHEDULE_VIEWS,
        "keys": (),
    },
    ChangeKind.REMINDER_STATUS_CHANGED: {
        "prefixes": _SCHEDULE_VIEWS + (keys.ADHERENCE_PREFIX,),
        "keys": (keys.ADMIN_REPORTS_KEY,),
    },
    ChangeKind.CAREGIVER_CHANGED: {
        "prefixes": (keys.CAREGIVER_PREFIX,),
        "keys": (),
    },
    ChangeKind.FAMILY_CHANGED: {
        "prefixes": (keys.FAMILY_PREFIX,),
        "keys": (),
    },
}

InvalidationResult = namedtuple("InvalidationResult", ["kind", "evicted", "ok"])


class InvalidationCoordinator:
    def __init__(self, store):
        self.store = store

    def keys_for(self, kind):
        """Scan the cache for every key `kind` makes stale."""
        rule = EVICTION_TABLE[kind]
        found = set(rule["keys"])
        for prefix in rule["prefixes"]:
            found |= self.store.keys_with_prefix(prefix, strict=True)
        return found

    def invalidate(self, kind):
        try:
            stale = self.keys_for(kind)
        except CacheUnavailable as e:
            logger.error("Invalidation for %s skipped, cache unavailable: %s", kind.value, e)
            return InvalidationResult(kind, 0, False)
        ok = self.store.delete_many(stale)
        if ok:
            logger.debug("Invalidated %d cache keys for %s", len(stale), kind.value)
        else:
            logger.error("Invalidation for %s could not delete %d keys", kind.value, len(stale))
        return InvalidationResult(kind, len(stale) if ok else 0, ok)


def invalidate(kind):
    """Best-effort post-commit hook. Logs and swallows every failure."""
    try:
        return InvalidationCoordinator(cache).invalidate(kind)
    except Exception:
        logger.exception("Unexpected failure invalidating %s", kind.value)
        return InvalidationResult(kind, 0, False)


def commit_and_invalidate(kind):
    """
    Commit the current session, then evict whatever `kind` made stale.
    A failed commit rolls back and raises DataSourceUnavailable; eviction only
    happens once the rows are durable.
    """
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Commit failed before %s invalidation: %s", kind.value, e)
        raise DataSourceUnavailable("Could not save changes")
    return invalidate(kind)
