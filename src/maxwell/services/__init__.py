"""Maxwell services module.

This module provides intent detection, entity extraction, calendar event
parsing and the calendar/similarity helpers built on them. Imports are lazy
so that importing one service does not pull in the others.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS: dict[str, tuple[str, str]] = {
    # Intent detection
    "CalendarAction": ("maxwell.services.intent", "CalendarAction"),
    "Intent": ("maxwell.services.intent", "Intent"),
    "IntentDetector": ("maxwell.services.intent", "IntentDetector"),
    "IntentRule": ("maxwell.services.intent", "IntentRule"),
    "IntentType": ("maxwell.services.intent", "IntentType"),
    "INTENT_RULES": ("maxwell.services.intent", "INTENT_RULES"),
    "detect_calendar_action": ("maxwell.services.intent", "detect_calendar_action"),
    "detect_intent": ("maxwell.services.intent", "detect_intent"),
    "get_intent_detector": ("maxwell.services.intent", "get_intent_detector"),
    # Entity extraction
    "ExtractedDate": ("maxwell.services.parsing", "ExtractedDate"),
    "extract_attendees": ("maxwell.services.parsing", "extract_attendees"),
    "extract_date_time": ("maxwell.services.parsing", "extract_date_time"),
    "extract_description": ("maxwell.services.parsing", "extract_description"),
    "extract_duration": ("maxwell.services.parsing", "extract_duration"),
    "extract_location": ("maxwell.services.parsing", "extract_location"),
    "extract_title": ("maxwell.services.parsing", "extract_title"),
    "get_next_weekday": ("maxwell.services.parsing", "get_next_weekday"),
    # Calendar event parsing
    "CalendarParser": ("maxwell.services.calendar_parser", "CalendarParser"),
    "ParsedCalendarEvent": ("maxwell.services.calendar_parser", "ParsedCalendarEvent"),
    "get_calendar_parser": ("maxwell.services.calendar_parser", "get_calendar_parser"),
    "parse_event_from_text": ("maxwell.services.calendar_parser", "parse_event_from_text"),
    # Calendar utilities
    "CalendarEvent": ("maxwell.services.calendar", "CalendarEvent"),
    "TimeSlot": ("maxwell.services.calendar", "TimeSlot"),
    "event_duration_minutes": ("maxwell.services.calendar", "event_duration_minutes"),
    "find_conflicts": ("maxwell.services.calendar", "find_conflicts"),
    "find_free_time": ("maxwell.services.calendar", "find_free_time"),
    "format_event_time": ("maxwell.services.calendar", "format_event_time"),
    # Similarity search
    "SimilarityMatch": ("maxwell.services.similarity", "SimilarityMatch"),
    "cosine_similarity": ("maxwell.services.similarity", "cosine_similarity"),
    "find_similar": ("maxwell.services.similarity", "find_similar"),
    # Timezone
    "TimezoneService": ("maxwell.services.timezone", "TimezoneService"),
    "get_timezone_service": ("maxwell.services.timezone", "get_timezone_service"),
    "reset_timezone_service": ("maxwell.services.timezone", "reset_timezone_service"),
}

__all__ = list(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = _EXPORTS[name]
    module = import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(_EXPORTS.keys()))
