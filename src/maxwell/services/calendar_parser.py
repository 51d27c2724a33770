"""Free-text calendar event parsing.

Turns "Lunch with Sarah at Nobu tomorrow at 1pm for 90 minutes" into a
structured event the calendar handler can persist. Uses the shared
extractors in ``maxwell.services.parsing``, so events created here and
calendar intents detected in chat resolve dates identically.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from maxwell.config import settings
from maxwell.services import parsing
from maxwell.services.timezone import TimezoneService

logger = logging.getLogger(__name__)


@dataclass
class ParsedCalendarEvent:
    """An event parsed from one utterance.

    ``end_time`` is always ``start_time + duration`` minutes, and duration is
    always positive.
    """

    title: str
    start_time: datetime
    end_time: datetime
    duration: int  # minutes
    location: str | None = None
    description: str | None = None
    attendees: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with ISO 8601 timestamps (e.g. 2026-10-13T14:00:00-07:00)."""
        return {
            "title": self.title,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration": self.duration,
            "location": self.location,
            "description": self.description,
            "attendees": list(self.attendees),
        }


class CalendarParser:
    """Parses a complete calendar event from free text."""

    def __init__(self, timezone: str | None = None, default_duration: int | None = None):
        """Initialize the parser.

        Args:
            timezone: IANA timezone used when ``now`` is not supplied.
                Defaults to settings.user_timezone.
            default_duration: Minutes used when the text states no duration.
                Defaults to settings.default_event_duration_minutes.
        """
        self._tz_service = TimezoneService(timezone)
        self.default_duration = default_duration or settings.default_event_duration_minutes

    def parse_event_from_text(
        self,
        text: str,
        now: datetime | None = None,
    ) -> ParsedCalendarEvent | None:
        """Parse an event from text.

        Args:
            text: Natural language event description
            now: Reference time for relative dates. Defaults to the current
                time in the configured timezone.

        Returns:
            ParsedCalendarEvent, or None when no title or no date/time could
            be found (the caller should ask the user to clarify).
        """
        text = text or ""

        title = parsing.extract_title(text)
        if not title:
            logger.debug("No event title found")
            return None

        reference = self._tz_service.resolve_now(now)
        start_time = parsing.extract_date_time(text, reference)
        if start_time is None:
            logger.debug(f"No date/time found for event {title!r}")
            return None

        duration = parsing.extract_duration(text) or self.default_duration
        try:
            end_time = start_time + timedelta(minutes=duration)
        except OverflowError:
            logger.debug(f"End time out of range for event {title!r}")
            return None

        return ParsedCalendarEvent(
            title=title,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            location=parsing.extract_location(text),
            description=parsing.extract_description(text),
            attendees=parsing.extract_attendees(text),
        )


# Module-level singleton
_calendar_parser: CalendarParser | None = None


def get_calendar_parser() -> CalendarParser:
    """Get or create the global CalendarParser instance."""
    global _calendar_parser
    if _calendar_parser is None:
        _calendar_parser = CalendarParser()
    return _calendar_parser


def reset_calendar_parser() -> None:
    """Reset the singleton (useful for testing)."""
    global _calendar_parser
    _calendar_parser = None


def parse_event_from_text(text: str, now: datetime | None = None) -> ParsedCalendarEvent | None:
    """Parse an event with the global parser."""
    return get_calendar_parser().parse_event_from_text(text, now)
