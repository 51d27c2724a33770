import argparse
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Any

from maxwell.config import settings
from maxwell.sentry import capture_exception, init_sentry, set_context
from maxwell.sentry import flush as sentry_flush

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _parse_now(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        print(f"Error: --now must be an ISO 8601 datetime, got {value!r}")
        sys.exit(2)


def detect(text: str, now: datetime | None, timezone: str | None) -> int:
    from maxwell.services.intent import IntentDetector

    intent = IntentDetector(timezone=timezone).detect_intent(text, now)
    _print_json(intent.to_dict())
    return 0


def parse_event(text: str, now: datetime | None, timezone: str | None) -> int:
    from maxwell.services.calendar_parser import CalendarParser

    event = CalendarParser(timezone=timezone).parse_event_from_text(text, now)
    if event is None:
        print("Could not find an event title and date in that text. Try e.g. "
              "'Lunch with Sam tomorrow at 1pm'.")
        return 1

    _print_json(event.to_dict())
    return 0


def free_time(events_path: Path, day: date, duration: int, timezone: str | None) -> int:
    """Print free slots for a day from a JSON file of stored events."""
    from maxwell.services.calendar import CalendarEvent, find_free_time
    from maxwell.services.timezone import TimezoneService

    try:
        rows = json.loads(events_path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: could not read events from {events_path}: {e}")
        return 1

    try:
        events = [CalendarEvent.from_dict(row) for row in rows]
    except (KeyError, TypeError, ValueError) as e:
        print(f"Error: invalid event in {events_path}: {e}")
        return 1

    try:
        slots = find_free_time(events, day, duration, timezone=TimezoneService(timezone).tzinfo)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    _print_json([slot.to_dict() for slot in slots])
    return 0


def check_config() -> int:
    print("Maxwell Configuration Check\n")

    checks = [
        ("User timezone", settings.user_timezone),
        ("Default event hour", f"{settings.default_event_hour}:00"),
        ("Default event duration", f"{settings.default_event_duration_minutes} min"),
        ("Working hours", f"{settings.working_hours_start}-{settings.working_hours_end}"),
        ("Sentry DSN", "configured" if settings.has_sentry else "not configured"),
    ]
    for name, value in checks:
        print(f"  {name}: {value}")

    print()
    if not settings.has_valid_working_hours:
        print("Working hours are invalid. Check WORKING_HOURS_START / WORKING_HOURS_END.")
        return 1

    print("Configuration OK.")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Maxwell personal assistant text tools")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    intent_parser = subparsers.add_parser("intent", help="Detect the intent of a message")
    intent_parser.add_argument("text")
    intent_parser.add_argument("--now", help="Reference time (ISO 8601)")
    intent_parser.add_argument("--timezone", help="IANA timezone (default: USER_TIMEZONE)")

    event_parser = subparsers.add_parser("parse-event", help="Parse a calendar event")
    event_parser.add_argument("text")
    event_parser.add_argument("--now", help="Reference time (ISO 8601)")
    event_parser.add_argument("--timezone", help="IANA timezone (default: USER_TIMEZONE)")

    free_parser = subparsers.add_parser("free-time", help="Find free slots in a day")
    free_parser.add_argument("events", type=Path, help="JSON file with a list of events")
    free_parser.add_argument("--date", required=True, type=date.fromisoformat)
    free_parser.add_argument("--duration", type=int, default=30, help="Minutes (default: 30)")
    free_parser.add_argument("--timezone", help="IANA timezone (default: USER_TIMEZONE)")

    subparsers.add_parser("check", help="Check configuration")

    args = parser.parse_args(argv)

    setup_logging()

    # Initialize Sentry for error tracking (disabled if no DSN configured)
    init_sentry(
        dsn=settings.sentry_dsn if settings.has_sentry else None,
        environment=settings.sentry_environment,
    )
    set_context("cli", {"command": args.command})

    try:
        if args.command == "intent":
            return detect(args.text, _parse_now(args.now), args.timezone)
        elif args.command == "parse-event":
            return parse_event(args.text, _parse_now(args.now), args.timezone)
        elif args.command == "free-time":
            return free_time(args.events, args.date, args.duration, args.timezone)
        elif args.command == "check":
            return check_config()
        else:
            parser.print_help()
            return 0
    except Exception as e:
        logger.exception(f"Command {args.command!r} failed")
        capture_exception(e)
        raise
    finally:
        # Flush any pending Sentry events before exit
        sentry_flush(timeout=2.0)


if __name__ == "__main__":
    sys.exit(main())
