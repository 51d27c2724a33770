"""Tests for calendar utilities: free time, conflicts and display."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from maxwell.services.calendar import (
    CalendarEvent,
    TimeSlot,
    event_duration_minutes,
    find_conflicts,
    find_free_time,
    format_event_time,
)

DAY = date(2026, 10, 13)


# --- Test Fixtures ---


@pytest.fixture
def tz():
    return ZoneInfo("America/Los_Angeles")


def event(tz, title, start_hour, end_hour, start_minute=0, end_minute=0, event_id=None, day=DAY):
    return CalendarEvent(
        title=title,
        start_time=datetime(day.year, day.month, day.day, start_hour, start_minute, tzinfo=tz),
        end_time=datetime(day.year, day.month, day.day, end_hour, end_minute, tzinfo=tz),
        id=event_id,
    )


@pytest.fixture
def busy_day(tz) -> list[CalendarEvent]:
    """10:00-11:00 and 10:30-12:00 overlap; 14:00-15:00 stands alone."""
    return [
        event(tz, "Standup", 14, 15, event_id="3"),
        event(tz, "Design review", 10, 11, event_id="1"),
        event(tz, "Planning", 10, 12, start_minute=30, event_id="2"),
    ]


def spans(slots: list[TimeSlot]) -> list[tuple[str, str]]:
    return [(f"{slot.start:%H:%M}", f"{slot.end:%H:%M}") for slot in slots]


# --- find_free_time ---


class TestFindFreeTime:
    def test_gaps_between_events(self, busy_day, tz):
        slots = find_free_time(busy_day, DAY, 30, working_hours=(9, 17), timezone=tz)
        assert spans(slots) == [("09:00", "10:00"), ("12:00", "14:00"), ("15:00", "17:00")]

    def test_slot_duration(self, busy_day, tz):
        slots = find_free_time(busy_day, DAY, 30, working_hours=(9, 17), timezone=tz)
        assert [slot.duration_minutes for slot in slots] == [60, 120, 120]

    def test_short_gaps_skipped(self, busy_day, tz):
        slots = find_free_time(busy_day, DAY, 90, working_hours=(9, 17), timezone=tz)
        assert spans(slots) == [("12:00", "14:00"), ("15:00", "17:00")]

    def test_empty_day(self, tz):
        slots = find_free_time([], DAY, 60, working_hours=(9, 17), timezone=tz)
        assert spans(slots) == [("09:00", "17:00")]

    def test_events_on_other_days_ignored(self, tz):
        other = event(tz, "Yesterday", 10, 11, day=date(2026, 10, 12))
        slots = find_free_time([other], DAY, 60, working_hours=(9, 17), timezone=tz)
        assert spans(slots) == [("09:00", "17:00")]

    def test_event_overlapping_window_start(self, tz):
        early = event(tz, "Breakfast", 8, 9, end_minute=30)
        slots = find_free_time([early], DAY, 30, working_hours=(9, 17), timezone=tz)
        assert spans(slots) == [("09:30", "17:00")]

    def test_nested_event_does_not_open_gap(self, tz):
        events = [event(tz, "Offsite", 10, 13), event(tz, "Lunch", 11, 12)]
        slots = find_free_time(events, DAY, 30, working_hours=(9, 17), timezone=tz)
        assert spans(slots) == [("09:00", "10:00"), ("13:00", "17:00")]

    def test_fully_booked(self, tz):
        slots = find_free_time([event(tz, "Hackathon", 8, 18)], DAY, 15, working_hours=(9, 17), timezone=tz)
        assert slots == []

    def test_naive_events_use_timezone(self, tz):
        naive = CalendarEvent("Naive", datetime(2026, 10, 13, 9, 0), datetime(2026, 10, 13, 12, 0))
        slots = find_free_time([naive], DAY, 30, working_hours=(9, 17), timezone=tz)
        assert spans(slots) == [("12:00", "17:00")]

    def test_slots_are_aware(self, tz):
        slots = find_free_time([], DAY, 30, working_hours=(9, 17), timezone=tz)
        assert slots[0].start.tzinfo == tz

    @pytest.mark.parametrize("duration", [0, -15])
    def test_invalid_duration(self, tz, duration):
        with pytest.raises(ValueError):
            find_free_time([], DAY, duration, working_hours=(9, 17), timezone=tz)

    @pytest.mark.parametrize("hours", [(17, 9), (9, 9), (-1, 5), (9, 25)])
    def test_invalid_working_hours(self, tz, hours):
        with pytest.raises(ValueError):
            find_free_time([], DAY, 30, working_hours=hours, timezone=tz)

    def test_to_dict(self, tz):
        slot = find_free_time([], DAY, 30, working_hours=(9, 10), timezone=tz)[0]
        assert slot.to_dict() == {
            "start": "2026-10-13T09:00:00-07:00",
            "end": "2026-10-13T10:00:00-07:00",
            "duration_minutes": 60,
        }


# --- find_conflicts ---


class TestFindConflicts:
    def test_overlapping_events(self, busy_day, tz):
        conflicts = find_conflicts(
            busy_day,
            datetime(2026, 10, 13, 10, 45, tzinfo=tz),
            datetime(2026, 10, 13, 11, 15, tzinfo=tz),
        )
        assert sorted(e.id for e in conflicts) == ["1", "2"]

    def test_back_to_back_is_not_a_conflict(self, busy_day, tz):
        conflicts = find_conflicts(
            busy_day,
            datetime(2026, 10, 13, 12, 0, tzinfo=tz),
            datetime(2026, 10, 13, 14, 0, tzinfo=tz),
        )
        assert conflicts == []

    def test_exclude_id(self, busy_day, tz):
        conflicts = find_conflicts(
            busy_day,
            datetime(2026, 10, 13, 14, 0, tzinfo=tz),
            datetime(2026, 10, 13, 15, 0, tzinfo=tz),
            exclude_id="3",
        )
        assert conflicts == []

    def test_invalid_interval(self, busy_day, tz):
        start = datetime(2026, 10, 13, 14, 0, tzinfo=tz)
        with pytest.raises(ValueError):
            find_conflicts(busy_day, start, start)


# --- Display helpers ---


class TestDisplay:
    def test_duration(self, tz):
        assert event_duration_minutes(event(tz, "Review", 14, 15, end_minute=30)) == 90

    def test_same_day(self, tz):
        assert format_event_time(event(tz, "Review", 14, 15, end_minute=30)) == "Tue, Oct 13 2pm - 3:30pm"

    def test_multi_day(self, tz):
        party = CalendarEvent(
            "Party",
            datetime(2026, 10, 16, 21, 0, tzinfo=tz),
            datetime(2026, 10, 17, 1, 0, tzinfo=tz),
        )
        assert format_event_time(party) == "Fri, Oct 16 9pm - Sat, Oct 17 1am"


class TestFromDict:
    def test_iso_strings(self):
        stored = CalendarEvent.from_dict(
            {
                "id": 7,
                "title": "Dentist",
                "start_time": "2026-10-13T14:00:00-07:00",
                "end_time": "2026-10-13T15:00:00-07:00",
                "attendees": None,
            }
        )
        assert stored.id == "7"
        assert stored.attendees == []
        assert event_duration_minutes(stored) == 60

    def test_missing_field(self):
        with pytest.raises(KeyError):
            CalendarEvent.from_dict({"title": "Dentist", "start_time": "2026-10-13T14:00:00"})

    def test_bad_timestamp(self):
        with pytest.raises(ValueError):
            CalendarEvent.from_dict({"title": "x", "start_time": "soon", "end_time": "later"})
