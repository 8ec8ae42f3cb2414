# app/utils/parsing.py
import logging
from datetime import datetime

from app.errors import ValidationFailure

logger = logging.getLogger(__name__)

_TIME_FORMATS = ("%H:%M:%S", "%H:%M")
_DATETIME_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M")


def parse_assigned_patients(raw):
    """
    Turn a stored "3, abc, ,7" style list into [3, 7].
    Empty, non-numeric and non-positive entries are dropped, duplicates collapsed.
    """
    if not raw:
        return []
    ids = []
    dropped = []
    for part in str(raw).split(","):
        token = part.strip()
        if not token:
            continue
        try:
            pid = int(token)
        except ValueError:
            dropped.append(token)
            continue
        if pid <= 0:
            dropped.append(token)
            continue
        if pid not in ids:
            ids.append(pid)
    if dropped:
        logger.warning("Ignoring malformed assigned patient entries: %s", dropped)
    return ids


def _parse_time(token):
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(token, fmt).time()
        except ValueError:
            continue
    raise ValidationFailure(f"Invalid time '{token}' (expected HH:MM or HH:MM:SS)")


def parse_time_schedule(raw):
    """Comma-separated daily dose times -> sorted unique list of datetime.time."""
    tokens = [t.strip() for t in str(raw or "").split(",") if t.strip()]
    if not tokens:
        raise ValidationFailure("time_schedule must contain at least one time")
    return sorted({_parse_time(t) for t in tokens})


def parse_datetime(raw):
    if not raw or not isinstance(raw, str):
        raise ValidationFailure("date_time is required (YYYY-MM-DD HH:MM:SS)")
    value = raw.strip()
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValidationFailure(f"Invalid date_time '{value}' (expected YYYY-MM-DD HH:MM:SS)")


def parse_optional_int(raw, field):
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationFailure(f"{field} must be an integer")
