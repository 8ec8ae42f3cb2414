from datetime import datetime, time

import pytest

from app.errors import ValidationFailure
from app.utils.parsing import parse_assigned_patients, parse_datetime, parse_optional_int, parse_time_schedule


def test_assigned_patients_drop_malformed_entries():
    assert parse_assigned_patients("3, abc, ,7") == [3, 7]


@pytest.mark.parametrize("raw,expected", [
    (None, []),
    ("", []),
    (" , ,", []),
    ("5", [5]),
    ("2,2, 9", [2, 9]),
    ("-1, 0, 4", [4]),
    ("1.5, 6", [6]),
])
def test_assigned_patients_edge_cases(raw, expected):
    assert parse_assigned_patients(raw) == expected


def test_time_schedule_sorted_and_unique():
    assert parse_time_schedule("20:00, 08:00,08:00:00") == [time(8, 0), time(20, 0)]


@pytest.mark.parametrize("raw", ["", None, "25:00", "noon", "08:00, later"])
def test_time_schedule_rejects_malformed(raw):
    with pytest.raises(ValidationFailure):
        parse_time_schedule(raw)


def test_parse_datetime_accepts_common_forms():
    expected = datetime(2026, 3, 10, 14, 30)
    assert parse_datetime("2026-03-10 14:30:00") == expected
    assert parse_datetime("2026-03-10T14:30") == expected


def test_parse_datetime_rejects_garbage():
    with pytest.raises(ValidationFailure):
        parse_datetime("next tuesday")


def test_parse_optional_int():
    assert parse_optional_int(None, "caregiver_id") is None
    assert parse_optional_int("7", "caregiver_id") == 7
    with pytest.raises(ValidationFailure):
        parse_optional_int("seven", "caregiver_id")
