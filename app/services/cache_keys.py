# app/services/cache_keys.py
"""Cache key namespace for derived views and their expiry."""

SCHEDULE_PREFIX = "schedule:"
CAREGIVER_PREFIX = "caregiver:"
FAMILY_PREFIX = "family:"
ADHERENCE_PREFIX = "adherence:"

ADMIN_REPORTS_KEY = "admin:reports"
CAREGIVER_LIST_KEY = CAREGIVER_PREFIX + "all"
FAMILY_LIST_KEY = FAMILY_PREFIX + "all"

SCHEDULE_TTL = 3600
AGGREGATE_TTL = 1800  # fans out to several patients, so it goes stale sooner
ADHERENCE_TTL = 3600
REPORT_TTL = 3600


def schedule_key(patient_id):
    return f"{SCHEDULE_PREFIX}{patient_id}"


def caregiver_key(caregiver_id):
    return f"{CAREGIVER_PREFIX}{caregiver_id}"


def family_key(family_id):
    return f"{FAMILY_PREFIX}{family_id}"


def adherence_key(patient_id):
    return f"{ADHERENCE_PREFIX}{patient_id}"
