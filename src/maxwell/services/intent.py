"""Intent detection for Maxwell chat input.

Classifies one user utterance into a task, reminder, note, calendar,
memory, search or general intent, and extracts the entities the matching
handler needs. Classification walks an ordered table of keyword rules; the
first rule with a matching keyword wins, so table order is the precedence.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from maxwell.config import settings
from maxwell.services import parsing
from maxwell.services.timezone import TimezoneService

logger = logging.getLogger(__name__)


class IntentType(str, Enum):
    """What the user wants Maxwell to do with an utterance."""

    TASK = "task"
    REMINDER = "reminder"
    NOTE = "note"
    CALENDAR = "calendar"
    MEMORY = "memory"
    SEARCH = "search"
    GENERAL = "general"


class CalendarAction(str, Enum):
    VIEW = "view"
    CREATE = "create"
    FIND_FREE_TIME = "find_free_time"
    CHECK_CONFLICTS = "check_conflicts"


# Fallback when no rule matches
GENERAL_CONFIDENCE = 0.5
GENERAL_ACTION = "chat"


@dataclass
class Intent:
    """Classified purpose of an utterance plus its extracted fields.

    ``confidence`` is a fixed weight attached to the rule that matched, not a
    probability; it never depends on how strongly the input matched.
    """

    type: IntentType
    confidence: float
    entities: dict[str, Any] = field(default_factory=dict)
    action: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "confidence": self.confidence,
            "entities": dict(self.entities),
            "action": self.action,
        }


EntityExtractorFn = Callable[[str, datetime], dict[str, Any]]


@dataclass(frozen=True)
class IntentRule:
    """One entry of the keyword table: when it matches and what it yields."""

    intent_type: IntentType
    patterns: tuple[str, ...]
    confidence: float
    extract: EntityExtractorFn
    action: str | Callable[[str], str]

    def matches(self, text_lower: str) -> bool:
        return any(pattern in text_lower for pattern in self.patterns)

    def resolve_action(self, text_lower: str) -> str:
        if callable(self.action):
            return self.action(text_lower)
        return self.action


# === Keyword tables ===

CALENDAR_PATTERNS = (
    "schedule",
    "book",
    "add event",
    "create event",
    "meeting",
    "appointment",
    "calendar",
    "set up meeting",
    "plan meeting",
    "block time",
    "reserve time",
    "what's my schedule",
    "show my calendar",
    "free time",
    "available",
    "when am i free",
    "check conflicts",
)

# "remind me to ..." is deliberately absent: it belongs to the reminder table.
TASK_PATTERNS = (
    "add task",
    "create task",
    "new task",
    "todo",
    "need to do",
    "i should",
    "i need to",
    "task:",
)

REMINDER_PATTERNS = (
    "remind me",
    "set reminder",
    "reminder",
    "alert me",
    "don't forget",
    "remember to tell me",
)

NOTE_PATTERNS = (
    "note:",
    "take note",
    "write down",
    "remember this",
    "journal",
    "log this",
    "save this",
)

MEMORY_PATTERNS = ("/forget", "forget about", "delete memory")

SEARCH_PATTERNS = (
    "search",
    "find",
    "look for",
    "show me",
    "what did i",
    "when did i",
    "where is",
)

# Calendar sub-actions, checked in this order; the default is VIEW
CALENDAR_ACTION_PATTERNS = (
    (CalendarAction.VIEW, ("what's my", "show me", "check", "view", "see my")),
    (CalendarAction.FIND_FREE_TIME, ("free time", "available", "when am i free")),
    (CalendarAction.CHECK_CONFLICTS, ("conflicts", "check conflicts")),
    (CalendarAction.CREATE, ("schedule", "book", "add", "create", "set up", "plan")),
)


def detect_calendar_action(text_lower: str) -> str:
    """Pick the calendar sub-action for an already lower-cased utterance."""
    for action, patterns in CALENDAR_ACTION_PATTERNS:
        if any(pattern in text_lower for pattern in patterns):
            return action.value
    return CalendarAction.VIEW.value


# === Entity extraction per intent type ===


def extract_calendar_entities(text: str, now: datetime) -> dict[str, Any]:
    entities: dict[str, Any] = {
        "title": parsing.extract_title(text) or parsing.DEFAULT_EVENT_TITLE,
    }

    start_time = parsing.extract_date_time(text, now)
    duration = parsing.extract_duration(text)

    if start_time is not None:
        entities["start_time"] = start_time.isoformat()
    if duration is not None:
        entities["duration"] = duration
    if start_time is not None:
        minutes = duration or settings.default_event_duration_minutes
        try:
            entities["end_time"] = (start_time + timedelta(minutes=minutes)).isoformat()
        except OverflowError:
            logger.debug(f"End time out of range for start {start_time.isoformat()}")

    location = parsing.extract_location(text)
    if location:
        entities["location"] = location

    attendees = parsing.extract_attendees(text)
    if attendees:
        entities["attendees"] = attendees

    description = parsing.extract_description(text)
    if description:
        entities["description"] = description

    return entities


def extract_task_entities(text: str, now: datetime) -> dict[str, Any]:
    entities: dict[str, Any] = {"priority": parsing.extract_priority(text)}

    due = parsing.extract_due_date(text, now)
    if due is not None:
        entities["due_date"] = due.value.isoformat()

    title = parsing.strip_phrases(text, TASK_PATTERNS)
    title = parsing.strip_priority(title)
    title = parsing.strip_temporal(title)
    entities["title"] = parsing.trim_connectors(title)

    return entities


def extract_reminder_entities(text: str, now: datetime) -> dict[str, Any]:
    entities: dict[str, Any] = {}

    remind_at = parsing.extract_reminder_time(text, now)
    if remind_at is not None:
        entities["time"] = remind_at.isoformat()

    recurring = parsing.extract_recurrence(text)
    if recurring:
        entities["recurring"] = recurring

    title = parsing.strip_phrases(text, REMINDER_PATTERNS)
    title = parsing.strip_recurrence(title)
    title = parsing.strip_temporal(title)
    entities["title"] = parsing.trim_connectors(title)

    return entities


def extract_note_entities(text: str, now: datetime) -> dict[str, Any]:
    note_type = parsing.extract_note_type(text)
    entities: dict[str, Any] = {"note_type": note_type}

    if note_type == "journal":
        mood = parsing.extract_mood(text)
        if mood:
            entities["mood"] = mood

    entities["content"] = parsing.clean_text(parsing.strip_phrases(text, NOTE_PATTERNS))
    return entities


def extract_forget_entities(text: str, now: datetime) -> dict[str, Any]:
    return {"topic": parsing.trim_connectors(parsing.strip_phrases(text, MEMORY_PATTERNS))}


def extract_search_entities(text: str, now: datetime) -> dict[str, Any]:
    return {"query": parsing.trim_connectors(parsing.strip_phrases(text, SEARCH_PATTERNS))}


INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(IntentType.CALENDAR, CALENDAR_PATTERNS, 0.9, extract_calendar_entities, detect_calendar_action),
    IntentRule(IntentType.TASK, TASK_PATTERNS, 0.9, extract_task_entities, "create"),
    IntentRule(IntentType.REMINDER, REMINDER_PATTERNS, 0.9, extract_reminder_entities, "create"),
    IntentRule(IntentType.NOTE, NOTE_PATTERNS, 0.9, extract_note_entities, "create"),
    IntentRule(IntentType.MEMORY, MEMORY_PATTERNS, 0.95, extract_forget_entities, "forget"),
    IntentRule(IntentType.SEARCH, SEARCH_PATTERNS, 0.8, extract_search_entities, "search"),
)


class IntentDetector:
    """Routes free-text input toward task, reminder, note, calendar, memory
    or search handlers.

    Stateless after construction: the same text and the same ``now`` always
    produce the same Intent, and one detector may serve concurrent requests.
    """

    def __init__(
        self,
        rules: tuple[IntentRule, ...] | list[IntentRule] = INTENT_RULES,
        timezone: str | None = None,
    ):
        """Initialize the detector.

        Args:
            rules: Ordered rule table; earlier rules take precedence.
            timezone: IANA timezone used when ``now`` is not supplied.
                Defaults to settings.user_timezone.
        """
        self.rules = tuple(rules)
        self._tz_service = TimezoneService(timezone)

    def detect_intent(self, text: str, now: datetime | None = None) -> Intent:
        """Classify an utterance and extract its entities.

        Never raises. Input matching no rule yields the general/chat intent
        with no entities.

        Args:
            text: The user's message
            now: Reference time for relative dates. Defaults to the current
                time in the configured timezone.

        Returns:
            Intent for the first matching rule
        """
        text = text or ""
        text_lower = text.lower()
        reference = self._tz_service.resolve_now(now)

        for rule in self.rules:
            if rule.matches(text_lower):
                action = rule.resolve_action(text_lower)
                logger.debug(f"Matched {rule.intent_type.value} rule (action={action})")
                return Intent(
                    type=rule.intent_type,
                    confidence=rule.confidence,
                    entities=rule.extract(text, reference),
                    action=action,
                )

        logger.debug("No intent rule matched, falling back to general chat")
        return Intent(
            type=IntentType.GENERAL,
            confidence=GENERAL_CONFIDENCE,
            entities={},
            action=GENERAL_ACTION,
        )


# Module-level singleton
_intent_detector: IntentDetector | None = None


def get_intent_detector() -> IntentDetector:
    """Get or create the global IntentDetector instance."""
    global _intent_detector
    if _intent_detector is None:
        _intent_detector = IntentDetector()
    return _intent_detector


def reset_intent_detector() -> None:
    """Reset the singleton (useful for testing)."""
    global _intent_detector
    _intent_detector = None


def detect_intent(text: str, now: datetime | None = None) -> Intent:
    """Classify text with the global detector."""
    return get_intent_detector().detect_intent(text, now)
