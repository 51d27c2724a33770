"""Entity extraction for free-text assistant input.

Pure string parsers shared by the intent detector and the calendar event
parser. Relative expressions ("today", "friday", "in 2 hours") are resolved
against an explicit reference time ``now``.

None of these functions raise on any input string: a missing entity is
``None`` (or an empty list), never an exception.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from maxwell.config import settings

logger = logging.getLogger(__name__)

WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}
_WEEKDAY_ALT = "|".join(WEEKDAYS)

MOODS = ("happy", "sad", "excited", "anxious", "grateful", "frustrated", "calm", "energetic")

DEFAULT_EVENT_TITLE = "Meeting"

# === Date and time patterns ===

# "2:30", "2:30pm", "2pm", "2 pm", "noon", "midnight"
TIME_PATTERN = re.compile(
    r"\b(?:(\d{1,2}):(\d{2})(?:\s*([ap]m)\b)?|(\d{1,2})\s*([ap]m)\b|(noon|midnight)\b)",
    re.IGNORECASE,
)

_CLOCK_FRAGMENT = r"(?:\d{1,2}(?::\d{2})?(?:\s*[ap]m)?|noon|midnight)"

# "from 2 to 3pm", "from 9:30am until 11", "from 1pm - 2pm"
TIME_RANGE_PATTERN = re.compile(
    rf"\bfrom\s+({_CLOCK_FRAGMENT})\s*(?:(?:to|until|till)\b|-)\s*({_CLOCK_FRAGMENT})(?!\w)",
    re.IGNORECASE,
)

# "at 3" (no am/pm, no minutes)
AT_HOUR_PATTERN = re.compile(r"\bat\s+(\d{1,2})\b(?!\s*(?::|[ap]m\b|/|-))", re.IGNORECASE)

RELATIVE_DAY_PATTERN = re.compile(r"\b(today|tomorrow)\b", re.IGNORECASE)
WEEKDAY_PATTERN = re.compile(rf"\b({_WEEKDAY_ALT})\b", re.IGNORECASE)
NEXT_WEEK_PATTERN = re.compile(r"\bnext week\b", re.IGNORECASE)
ISO_DATE_PATTERN = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
# MM/DD[/YYYY], never followed by a meridiem or a colon (that's a time range)
NUMERIC_DATE_PATTERN = re.compile(
    r"(?<!\bfrom )\b(\d{1,2})[/-](\d{1,2})(?:[/-](\d{4}|\d{2}))?\b(?!\s*(?:[ap]m\b|:))",
    re.IGNORECASE,
)

# "in 20 minutes", "in 2 hours", "in 3 days"
RELATIVE_OFFSET_PATTERN = re.compile(
    r"\bin\s+(\d+)\s+(minute|min|hour|hr|day|week)s?\b",
    re.IGNORECASE,
)

# === Duration patterns ===

DURATION_PATTERN = re.compile(
    r"\b(\d+(?:\.\d+)?)\s*(minutes?|mins?|hours?|hrs?)\b",
    re.IGNORECASE,
)
# Stated durations above a week count as absent
MAX_DURATION_MINUTES = 7 * 24 * 60
FRACTIONAL_HOUR_PATTERN = re.compile(
    r"\b(half|quarter)\s+(?:of\s+)?(?:an?\s+)?hour\b",
    re.IGNORECASE,
)

# === Event detail patterns ===

_CLAUSE_WORDS = (
    "with", "on", "from", "to", "for", "at", "about", "regarding", "today",
    "tomorrow", "next", "this", "by", "until", "every",
) + tuple(WEEKDAYS)
_CLAUSE_ALT = "|".join(_CLAUSE_WORDS)
_ATTENDEE_STOP_ALT = "|".join(word for word in _CLAUSE_WORDS + ("in",) if word != "with")
# " 3pm", " 10:30" ahead; ends a location or attendee phrase
_TIME_AHEAD = r"\s+\d{1,2}(?::\d{2}|\s*[ap]m\b)"

LOCATION_PATTERN = re.compile(
    r"(?:\b(?:at|in)\s+|(?:^|(?<=\s))@\s*)"
    r"(?!\d)(?!(?:noon|midnight|the\s+(?:morning|afternoon|evening)|an?\s+(?:hour|minute))\b)"
    r"([^,;\n]+?)"
    rf"(?=\s+(?:(?:{_CLAUSE_ALT})\b|re:)|{_TIME_AHEAD}|[,;\n]|\.(?:\s|$)|$)",
    re.IGNORECASE,
)
LOCATION_LABEL_PATTERN = re.compile(r"\blocation:\s*([^,\n]+)", re.IGNORECASE)

ATTENDEE_PATTERN = re.compile(
    r"\bwith\s+(.+?)"
    rf"(?=,?\s+(?:(?:{_ATTENDEE_STOP_ALT})\b|re:)|{_TIME_AHEAD}|[;\n]|\.(?:\s|$)|$)",
    re.IGNORECASE,
)
ATTENDEE_SEPARATOR = re.compile(r"\s*,\s*(?:and\s+)?|\s+and\s+|\s*&\s*", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")

DESCRIPTION_PATTERN = re.compile(
    r"(?:\b(?:about|regarding)\b|\bre:|\bdescription:)\s*([^,\n]+)",
    re.IGNORECASE,
)

# === Title patterns ===

QUOTED_PATTERN = re.compile(r"[\"“]([^\"”]+)[\"”]")
SCHEDULING_VERBS = re.compile(r"\b(?:schedule|book|add|create|set up|plan)\b", re.IGNORECASE)
EVENT_NOUNS = re.compile(r"\b(?:meeting|appointment|event|call)\b", re.IGNORECASE)
TITLE_STOP_PATTERN = re.compile(
    rf"\b(?:at|on|in|from|with|for|about|regarding|tomorrow|today|next|{_WEEKDAY_ALT})\b"
    r"|\b\d{1,2}:\d{2}|\b\d{1,2}\s*[ap]m\b|\b\d{1,2}[/-]\d{1,2}|(?:^|\s)@",
    re.IGNORECASE,
)
LEADING_FILLER = re.compile(r"^(?:(?:a|an|the|my|our|me|new|please)\s+)+", re.IGNORECASE)
LEADING_CONNECTORS = re.compile(r"^(?:(?:to|that|about|for|of|me|please)\s+)+", re.IGNORECASE)
TRAILING_CONNECTORS = re.compile(
    r"(?:\s+(?:at|on|by|before|due|for|to|in|from|until|around))+$",
    re.IGNORECASE,
)

# Date/time phrases removed from task and reminder titles, most specific first
_DATE_PREFIX = r"(?:\b(?:on|by|before|until|due|this|next)\s+)?"
_TIME_PREFIX = r"(?:\b(?:at|by|before|until|around)\s+)?"
TEMPORAL_PATTERNS = (
    re.compile(rf"{_DATE_PREFIX}\b(?:{_WEEKDAY_ALT})\b", re.IGNORECASE),
    re.compile(rf"{_DATE_PREFIX}\b(?:today|tonight|tomorrow|next week)\b", re.IGNORECASE),
    re.compile(rf"{_DATE_PREFIX}\b\d{{4}}-\d{{2}}-\d{{2}}\b", re.IGNORECASE),
    re.compile(rf"{_DATE_PREFIX}\b\d{{1,2}}[/-]\d{{1,2}}(?:[/-]\d{{2,4}})?\b", re.IGNORECASE),
    re.compile(rf"{_TIME_PREFIX}\b\d{{1,2}}:\d{{2}}(?:\s*[ap]m\b)?", re.IGNORECASE),
    re.compile(rf"{_TIME_PREFIX}\b\d{{1,2}}\s*[ap]m\b", re.IGNORECASE),
    re.compile(rf"{_TIME_PREFIX}\b(?:noon|midnight)\b", re.IGNORECASE),
    re.compile(r"\bin\s+\d+\s+(?:minutes?|mins?|hours?|hrs?|days?|weeks?)\b", re.IGNORECASE),
    re.compile(r"\bat\s+\d{1,2}\b", re.IGNORECASE),
)

PRIORITY_MARKERS = (
    ("urgent", ("urgent", "🔥")),
    ("high", ("high priority", "⚡")),
    ("low", ("low priority", "💡")),
)
PRIORITY_PATTERN = re.compile(r"urgent|high priority|low priority|🔥|⚡|💡", re.IGNORECASE)
DEFAULT_PRIORITY = "medium"

RECURRENCE_MARKERS = (
    ("daily", ("every day", "daily")),
    ("weekly", ("every week", "weekly")),
    ("monthly", ("every month", "monthly")),
)
RECURRENCE_PATTERN = re.compile(
    r"\b(?:every day|daily|every week|weekly|every month|monthly)\b",
    re.IGNORECASE,
)

MOOD_PATTERN = re.compile(rf"\b({'|'.join(MOODS)})\b", re.IGNORECASE)


@dataclass(frozen=True)
class ExtractedDate:
    """A calendar date found in text, with the fragment it came from."""

    value: date
    original_text: str


# === Helpers ===


def clean_text(text: str) -> str:
    """Collapse whitespace and trim punctuation left behind by stripping."""
    text = re.sub(r"\s+", " ", text)
    return text.strip(" \t,.;:-!?")


def strip_phrases(text: str, phrases: tuple[str, ...] | list[str]) -> str:
    """Remove every occurrence of the given phrases, case-insensitively.

    Phrases that start or end with a word character only match on a word
    boundary on that side, so "find" does not eat into "findings".
    """
    for phrase in sorted(phrases, key=len, reverse=True):
        pattern = re.escape(phrase)
        if phrase[:1].isalnum():
            pattern = r"(?<!\w)" + pattern
        if phrase[-1:].isalnum():
            pattern = pattern + r"(?!\w)"
        text = re.sub(pattern, " ", text, flags=re.IGNORECASE)
    return text


def strip_temporal(text: str) -> str:
    """Remove date, time and relative-offset phrases from text."""
    for pattern in TEMPORAL_PATTERNS:
        text = pattern.sub(" ", text)
    return text


def trim_connectors(text: str) -> str:
    """Drop dangling connectors ("to call mom at" -> "call mom")."""
    text = clean_text(text)
    text = LEADING_CONNECTORS.sub("", text)
    text = TRAILING_CONNECTORS.sub("", text)
    return clean_text(text)


def _to_24h(hour: int, minute: int, period: str | None) -> tuple[int, int] | None:
    if minute > 59:
        return None
    if period:
        if not 1 <= hour <= 12:
            return None
        period = period.lower()
        if period == "pm" and hour != 12:
            hour += 12
        elif period == "am" and hour == 12:
            hour = 0
    elif hour > 23:
        return None
    return hour, minute


def _time_from_match(match: re.Match) -> tuple[int, int] | None:
    if match.group(6):
        return (12, 0) if match.group(6).lower() == "noon" else (0, 0)
    if match.group(1):
        return _to_24h(int(match.group(1)), int(match.group(2)), match.group(3))
    return _to_24h(int(match.group(4)), 0, match.group(5))


def _split_clock(fragment: str) -> tuple[int, int, str | None] | None:
    """Split "2:30pm" into (2, 30, "pm") without applying the period."""
    fragment = fragment.strip().lower()
    if fragment == "noon":
        return 12, 0, "pm"
    if fragment == "midnight":
        return 12, 0, "am"
    match = re.fullmatch(r"(\d{1,2})(?::(\d{2}))?\s*([ap]m)?", fragment)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2) or 0), match.group(3)


def _at_reference_day(day: date, hour: int, minute: int, now: datetime) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=now.tzinfo)


# === Time of day ===


def parse_time_string(text: str) -> tuple[int, int] | None:
    """Convert the first clock expression in text to 24-hour (hour, minute).

    Examples:
        "2pm" -> (14, 0)
        "12:15 am" -> (0, 15)
        "noon" -> (12, 0)
    """
    for match in TIME_PATTERN.finditer(text):
        parsed = _time_from_match(match)
        if parsed is not None:
            return parsed
    return None


def extract_time(text: str) -> tuple[int, int] | None:
    """Extract the first valid clock time from text, or None."""
    return parse_time_string(text)


def extract_time_range(text: str) -> tuple[tuple[int, int], tuple[int, int]] | None:
    """Extract a "from X to Y" range as ((start_h, start_m), (end_h, end_m)).

    A bound without am/pm borrows the other bound's period when that keeps
    the start before the end ("from 2 to 4pm" is 14:00-16:00).
    """
    match = TIME_RANGE_PATTERN.search(text)
    if not match:
        return None

    start = _split_clock(match.group(1))
    end = _split_clock(match.group(2))
    if start is None or end is None:
        return None

    start_h, start_m, start_period = start
    end_h, end_m, end_period = end

    start_time = _to_24h(start_h, start_m, start_period)
    end_time = _to_24h(end_h, end_m, end_period)

    if start_period is None and end_period is not None:
        borrowed = _to_24h(start_h, start_m, end_period)
        if borrowed is not None and end_time is not None and borrowed < end_time:
            start_time = borrowed
    elif end_period is None and start_period is not None:
        borrowed = _to_24h(end_h, end_m, start_period)
        if borrowed is not None and start_time is not None and borrowed > start_time:
            end_time = borrowed

    if start_time is None or end_time is None:
        return None
    return start_time, end_time


# === Dates ===


def get_next_weekday(day_name: str, now: datetime) -> date | None:
    """Return the next occurrence of a weekday strictly after today.

    Asking for "monday" on a Monday yields the Monday seven days out.
    """
    target = WEEKDAYS.get(day_name.strip().lower())
    if target is None:
        return None
    days_ahead = target - now.weekday()
    if days_ahead <= 0:
        days_ahead += 7
    return (now + timedelta(days=days_ahead)).date()


def _numeric_date(match: re.Match, now: datetime) -> date | None:
    month = int(match.group(1))
    day = int(match.group(2))
    year = now.year
    if match.group(3):
        year = int(match.group(3))
        if year < 100:
            year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        logger.debug(f"Ignoring impossible date {match.group(0)!r}")
        return None


def _iso_date(match: re.Match) -> date | None:
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        logger.debug(f"Ignoring impossible date {match.group(0)!r}")
        return None


def extract_date(text: str, now: datetime) -> ExtractedDate | None:
    """Find the date an utterance refers to.

    Checked in order: today, tomorrow, weekday names (next occurrence),
    ISO dates, MM/DD[/YYYY], then "next week".
    """
    match = RELATIVE_DAY_PATTERN.search(text)
    if match:
        offset = 1 if match.group(1).lower() == "tomorrow" else 0
        return ExtractedDate((now + timedelta(days=offset)).date(), match.group(0))

    match = WEEKDAY_PATTERN.search(text)
    if match:
        weekday = get_next_weekday(match.group(1), now)
        if weekday is not None:
            return ExtractedDate(weekday, match.group(0))

    match = ISO_DATE_PATTERN.search(text)
    if match:
        value = _iso_date(match)
        if value is not None:
            return ExtractedDate(value, match.group(0))

    match = NUMERIC_DATE_PATTERN.search(text)
    if match:
        value = _numeric_date(match, now)
        if value is not None:
            return ExtractedDate(value, match.group(0))

    match = NEXT_WEEK_PATTERN.search(text)
    if match:
        return ExtractedDate((now + timedelta(days=7)).date(), match.group(0))

    return None


def extract_date_time(text: str, now: datetime) -> datetime | None:
    """Resolve the start date-time of an event.

    The date comes from ``extract_date``; the time of day from an explicit
    range start, else the first clock time, else the default event hour.
    Returns None when the text has no date expression at all.
    """
    found = extract_date(text, now)
    if found is None:
        return None

    time_range = extract_time_range(text)
    if time_range is not None:
        hour, minute = time_range[0]
    else:
        clock = extract_time(text)
        hour, minute = clock if clock else (settings.default_event_hour, 0)

    return _at_reference_day(found.value, hour, minute, now)


def extract_due_date(text: str, now: datetime) -> ExtractedDate | None:
    """Due date for a task; the same vocabulary as event dates."""
    return extract_date(text, now)


def extract_reminder_time(text: str, now: datetime) -> datetime | None:
    """Resolve when a reminder should fire.

    Priority:
    1. An explicit date expression ("tomorrow at 9am", "friday")
    2. A clock time or "at N", at its next occurrence (today, or tomorrow
       if it has already passed)
    3. A relative offset ("in 20 minutes")
    """
    if extract_date(text, now) is not None:
        return extract_date_time(text, now)

    clock = extract_time(text)
    if clock is None:
        at_match = AT_HOUR_PATTERN.search(text)
        if at_match and int(at_match.group(1)) <= 23:
            clock = (int(at_match.group(1)), 0)

    if clock is not None:
        candidate = _at_reference_day(now.date(), clock[0], clock[1], now)
        if candidate <= now:
            candidate = _at_reference_day(now.date() + timedelta(days=1), clock[0], clock[1], now)
        return candidate

    match = RELATIVE_OFFSET_PATTERN.search(text)
    if match:
        amount = int(match.group(1))
        unit = match.group(2).lower()
        try:
            if unit in ("minute", "min"):
                return now + timedelta(minutes=amount)
            if unit in ("hour", "hr"):
                return now + timedelta(hours=amount)
            if unit == "day":
                return now + timedelta(days=amount)
            return now + timedelta(weeks=amount)
        except OverflowError:
            logger.debug(f"Ignoring out-of-range offset {match.group(0)!r}")
            return None

    return None


# === Duration ===


def extract_duration(text: str) -> int | None:
    """Extract an event duration in minutes.

    An explicit time range wins over a stated amount when both appear.
    Ranges that wrap past midnight count forward ("from 11pm to 1am" is
    120 minutes). Returns None for zero or unparseable durations.
    """
    time_range = extract_time_range(text)
    if time_range is not None:
        (start_h, start_m), (end_h, end_m) = time_range
        minutes = (end_h * 60 + end_m) - (start_h * 60 + start_m)
        if minutes < 0:
            minutes += 24 * 60
        if minutes > 0:
            return minutes

    match = DURATION_PATTERN.search(text)
    if match:
        amount = float(match.group(1))
        unit = match.group(2).lower()
        if unit.startswith("h"):
            amount *= 60
        if amount > MAX_DURATION_MINUTES:
            logger.debug(f"Ignoring duration {match.group(0)!r}")
            return None
        minutes = round(amount)
        return minutes if minutes > 0 else None

    match = FRACTIONAL_HOUR_PATTERN.search(text)
    if match:
        return 30 if match.group(1).lower() == "half" else 15

    return None


# === Event details ===


def extract_location(text: str) -> str | None:
    """Extract a location from "location: X" or "at|in|@ X" phrases."""
    match = LOCATION_LABEL_PATTERN.search(text)
    if match is None:
        match = LOCATION_PATTERN.search(text)
    if match is None:
        return None
    location = clean_text(match.group(1))
    return location or None


def extract_attendees(text: str) -> list[str]:
    """Extract attendee names after "with" plus any email addresses.

    Duplicates are removed, keeping the order of first appearance.
    """
    attendees: list[str] = []

    match = ATTENDEE_PATTERN.search(text)
    if match:
        for person in ATTENDEE_SEPARATOR.split(match.group(1)):
            person = clean_text(person)
            if person:
                attendees.append(person)

    attendees.extend(EMAIL_PATTERN.findall(text))

    return list(dict.fromkeys(attendees))


def extract_description(text: str) -> str | None:
    match = DESCRIPTION_PATTERN.search(text)
    if match is None:
        return None
    description = clean_text(match.group(1))
    return description or None


def extract_title(text: str) -> str | None:
    """Extract an event title.

    A quoted substring wins. Otherwise the text before the first date, time
    or clause indicator, minus scheduling verbs and leading articles. Event
    nouns ("meeting", "call") are dropped only when other words remain, so
    "Schedule a meeting with Alice" gives "meeting" and "Book dentist
    appointment" gives "dentist".
    """
    quoted = QUOTED_PATTERN.search(text)
    if quoted and clean_text(quoted.group(1)):
        return clean_text(quoted.group(1))

    stop = TITLE_STOP_PATTERN.search(text)
    head = text[: stop.start()] if stop else text
    head = clean_text(SCHEDULING_VERBS.sub(" ", head))
    head = clean_text(LEADING_FILLER.sub("", head))

    without_nouns = clean_text(EVENT_NOUNS.sub(" ", head))
    without_nouns = clean_text(LEADING_FILLER.sub("", without_nouns))

    return without_nouns or head or None


# === Task, reminder and note fields ===


def extract_priority(text: str) -> str:
    text_lower = text.lower()
    for priority, markers in PRIORITY_MARKERS:
        if any(marker in text_lower for marker in markers):
            return priority
    return DEFAULT_PRIORITY


def strip_priority(text: str) -> str:
    return PRIORITY_PATTERN.sub(" ", text)


def extract_recurrence(text: str) -> str | None:
    text_lower = text.lower()
    for recurrence, markers in RECURRENCE_MARKERS:
        if any(marker in text_lower for marker in markers):
            return recurrence
    return None


def strip_recurrence(text: str) -> str:
    return RECURRENCE_PATTERN.sub(" ", text)


def extract_note_type(text: str) -> str:
    """Classify a note as "journal", "idea" or plain "note"."""
    text_lower = text.lower()
    if "journal" in text_lower or "feeling" in text_lower:
        return "journal"
    if "idea" in text_lower or "💡" in text:
        return "idea"
    return "note"


def extract_mood(text: str) -> str | None:
    match = MOOD_PATTERN.search(text)
    return match.group(1).lower() if match else None
