"""Timestamp and activity-log parsing."""

from __future__ import annotations

import pytest

from storyline.errors import InputValidationError
from storyline.validation.events import missing_fields, parse_activity_logs, parse_timestamp


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-01-15T10:30:00Z", "2024-01-15T10:30:00"),
        ("2024-01-15T10:30:00.250Z", "2024-01-15T10:30:00.250000"),
        ("2024-01-15T05:30:00-05:00", "2024-01-15T10:30:00"),
        ("2024-01-15", "2024-01-15T00:00:00"),
    ],
)
def test_iso_timestamps_become_naive_utc(raw, expected) -> None:
    assert parse_timestamp(raw).isoformat() == expected


@pytest.mark.parametrize("raw", ["", "soon", "15/01/2024", None, 1705314600])
def test_non_iso_values_are_rejected(raw) -> None:
    assert parse_timestamp(raw) is None


def test_missing_fields_treats_blank_strings_as_missing() -> None:
    assert missing_fields({"a": "x", "b": " ", "c": 0}, ("a", "b", "c", "d")) == ["b", "d"]


def test_activity_logs_parse_into_events() -> None:
    events = parse_activity_logs(
        [{"id": "e1", "action": "create", "event": "signup", "timestamp": "2024-01-15T10:30:00Z"}]
    )

    assert events[0].id == "e1"
    assert events[0].event_details == ""
    assert events[0].timestamp.isoformat() == "2024-01-15T10:30:00"


@pytest.mark.parametrize(
    "raw",
    [
        "not a list",
        [],
        [{"action": "create", "event": "signup"}],
        [{"action": "create", "event": "signup", "timestamp": "later"}],
    ],
)
def test_bad_activity_logs_are_rejected(raw) -> None:
    with pytest.raises(InputValidationError) as excinfo:
        parse_activity_logs(raw)

    assert excinfo.value.error_code == "INVALID_ACTIVITY_LOGS"
