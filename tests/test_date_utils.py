from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from medpresecure.core.exceptions import BookingValidationError
from medpresecure.utils.date_utils import (
    TIME_SLOTS,
    available_slots,
    combine_slot,
    day_bounds,
    format_time_slot,
    is_offered_slot,
    parse_time_slot,
)


class TestParseTimeSlot:

    @pytest.mark.parametrize("label, expected", [
        ("09:00 AM", time(9, 0)),
        ("10:30 AM", time(10, 30)),
        ("12:30 PM", time(12, 30)),
        ("01:00 PM", time(13, 0)),
        ("4:00 pm", time(16, 0)),
        ("12:00 AM", time(0, 0)),
        ("11:30AM", time(11, 30)),
    ])
    def test_parses_twelve_hour_labels(self, label, expected):
        assert parse_time_slot(label) == expected

    @pytest.mark.parametrize("label", ["", "13:00 PM", "10:60 AM", "10:00", "ten o'clock", None])
    def test_rejects_malformed_labels(self, label):
        with pytest.raises(BookingValidationError):
            parse_time_slot(label)


class TestCombineSlot:

    def test_resolves_in_given_timezone(self):
        moment = combine_slot(date(2025, 6, 1), "10:00 AM", ZoneInfo("America/New_York"))

        assert moment.astimezone(timezone.utc) == datetime(2025, 6, 1, 14, 0, tzinfo=timezone.utc)

    def test_uses_clinic_timezone_from_environment(self, monkeypatch):
        monkeypatch.setenv("CLINIC_TIMEZONE", "Asia/Kolkata")

        moment = combine_slot(date(2025, 6, 1), "10:00 AM")

        assert moment.astimezone(timezone.utc) == datetime(2025, 6, 1, 4, 30, tzinfo=timezone.utc)

    def test_unknown_timezone_is_a_validation_error(self, monkeypatch):
        monkeypatch.setenv("CLINIC_TIMEZONE", "Mars/Olympus_Mons")

        with pytest.raises(BookingValidationError):
            combine_slot(date(2025, 6, 1), "10:00 AM")


def test_format_round_trips_through_utc():
    tz = ZoneInfo("America/New_York")
    stored = combine_slot(date(2025, 6, 1), "01:30 PM", tz).astimezone(timezone.utc)

    assert format_time_slot(stored, tz) == "01:30 PM"


def test_format_rejects_naive_timestamp():
    with pytest.raises(BookingValidationError):
        format_time_slot(datetime(2025, 6, 1, 10, 0))


def test_day_bounds_cover_one_calendar_day():
    start, end = day_bounds(date(2025, 6, 1), ZoneInfo("UTC"))

    assert start == datetime(2025, 6, 1, tzinfo=timezone.utc)
    assert end == datetime(2025, 6, 2, tzinfo=timezone.utc)


def test_offered_slots_skip_lunch_break():
    assert is_offered_slot("10:00 AM")
    assert is_offered_slot("1:00 pm")
    assert not is_offered_slot("12:00 PM")
    assert not is_offered_slot("garbage")


def test_available_slots_excludes_booked():
    free = available_slots(["10:00 AM", "02:30 PM"])

    assert "10:00 AM" not in free
    assert "02:30 PM" not in free
    assert len(free) == len(TIME_SLOTS) - 2
