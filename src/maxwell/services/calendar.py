"""Calendar utilities over an in-memory list of events.

Free-time search, overlap detection and display helpers. The caller fetches
events from storage; everything here is a pure function of its arguments.

Unlike the parsing core, these helpers validate their arguments and raise
ValueError on nonsense input (negative durations, inverted windows).
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any

from maxwell.config import settings
from maxwell.services.timezone import TimezoneService, get_timezone_service

logger = logging.getLogger(__name__)


@dataclass
class CalendarEvent:
    """A stored calendar event."""

    title: str
    start_time: datetime
    end_time: datetime
    id: str | None = None
    location: str | None = None
    description: str | None = None
    attendees: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CalendarEvent":
        """Build an event from a stored row with ISO 8601 timestamps.

        Raises:
            KeyError: If title, start_time or end_time is missing.
            ValueError: If a timestamp is not valid ISO 8601.
        """
        start = data["start_time"]
        end = data["end_time"]
        event_id = data.get("id")
        return cls(
            title=data["title"],
            start_time=start if isinstance(start, datetime) else datetime.fromisoformat(start),
            end_time=end if isinstance(end, datetime) else datetime.fromisoformat(end),
            id=str(event_id) if event_id is not None else None,
            location=data.get("location"),
            description=data.get("description"),
            attendees=list(data.get("attendees") or []),
        )


@dataclass
class TimeSlot:
    """A free interval on the calendar."""

    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> int:
        return round((self.end - self.start).total_seconds() / 60)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration_minutes": self.duration_minutes,
        }


def _as_aware(dt: datetime, tz: tzinfo) -> datetime:
    return dt.replace(tzinfo=tz) if dt.tzinfo is None else dt


def find_free_time(
    events: Iterable[CalendarEvent],
    day: date,
    duration_minutes: int,
    working_hours: tuple[int, int] | None = None,
    timezone: tzinfo | None = None,
) -> list[TimeSlot]:
    """Find gaps of at least ``duration_minutes`` within a day's working hours.

    Events are scanned in start order. Overlapping events are merged by
    moving the cursor to the latest end seen so far, so a short event nested
    inside a long one never opens a false gap.

    Args:
        events: Events to consider; those outside the working window are ignored
        day: The day to search
        duration_minutes: Minimum slot length
        working_hours: (start_hour, end_hour). Defaults to settings.
        timezone: Zone for the working window and for naive event times.
            Defaults to the user's timezone.

    Returns:
        Free slots in chronological order

    Raises:
        ValueError: If duration is not positive or working hours are invalid
    """
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")

    start_hour, end_hour = working_hours or (settings.working_hours_start, settings.working_hours_end)
    if not 0 <= start_hour < end_hour <= 24:
        raise ValueError(f"Invalid working hours: {start_hour}-{end_hour}")

    tz = timezone or get_timezone_service().tzinfo
    window_start = datetime.combine(day, time(start_hour), tzinfo=tz)
    if end_hour == 24:
        window_end = datetime.combine(day + timedelta(days=1), time(0), tzinfo=tz)
    else:
        window_end = datetime.combine(day, time(end_hour), tzinfo=tz)

    intervals = sorted(
        (
            (_as_aware(event.start_time, tz), _as_aware(event.end_time, tz))
            for event in events
        ),
        key=lambda interval: interval[0],
    )

    needed = timedelta(minutes=duration_minutes)
    slots: list[TimeSlot] = []
    cursor = window_start

    for event_start, event_end in intervals:
        if event_end <= window_start or event_start >= window_end:
            continue
        if event_start > cursor and event_start - cursor >= needed:
            slots.append(TimeSlot(start=cursor, end=event_start))
        if event_end > cursor:
            cursor = event_end

    if window_end > cursor and window_end - cursor >= needed:
        slots.append(TimeSlot(start=cursor, end=window_end))

    logger.debug(f"Found {len(slots)} free slot(s) of {duration_minutes}+ min on {day}")
    return slots


def find_conflicts(
    events: Iterable[CalendarEvent],
    start: datetime,
    end: datetime,
    exclude_id: str | None = None,
) -> list[CalendarEvent]:
    """Return events overlapping [start, end).

    Back-to-back events (one ending exactly when the other starts) do not
    conflict. ``exclude_id`` skips the event being rescheduled.

    Raises:
        ValueError: If end is not after start
    """
    if end <= start:
        raise ValueError("end must be after start")

    tz = start.tzinfo or get_timezone_service().tzinfo
    start = _as_aware(start, tz)
    end = _as_aware(end, tz)

    return [
        event
        for event in events
        if (exclude_id is None or event.id != exclude_id)
        and _as_aware(event.start_time, tz) < end
        and _as_aware(event.end_time, tz) > start
    ]


def event_duration_minutes(event: CalendarEvent) -> int:
    return round((event.end_time - event.start_time).total_seconds() / 60)


def _format_day(dt: datetime) -> str:
    return f"{dt:%a}, {dt:%b} {dt.day}"


def format_event_time(event: CalendarEvent) -> str:
    """Format an event's span for display.

    Examples:
        "Tue, Oct 13 2pm - 3:30pm"
        "Fri, Oct 16 9pm - Sat, Oct 17 1am"
    """
    start = event.start_time
    end = event.end_time
    if start.tzinfo is not None and end.tzinfo is not None:
        end = end.astimezone(start.tzinfo)

    start_str = TimezoneService.format_for_display(start)
    end_str = TimezoneService.format_for_display(end)

    if start.date() == end.date():
        return f"{_format_day(start)} {start_str} - {end_str}"
    return f"{_format_day(start)} {start_str} - {_format_day(end)} {end_str}"
