"""Timezone handling for Maxwell.

Every relative date ("today", "tomorrow", "friday") is resolved against a
reference time. Callers may pass that reference explicitly; when they don't,
this service supplies the current time in the user's configured timezone.
"""

import logging
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from maxwell.config import settings

logger = logging.getLogger(__name__)


class TimezoneService:
    """Resolves the user's timezone and the reference "now".

    Features:
    - User-configured default timezone from settings
    - Fallback to UTC for unknown zone names
    - Localization of naive datetimes
    - Compact 12-hour display formatting ("2pm", "3:30pm")
    """

    def __init__(self, default_timezone: str | None = None):
        """Initialize timezone service.

        Args:
            default_timezone: IANA timezone name. Defaults to settings.user_timezone.
        """
        self._default_tz_name = default_timezone or settings.user_timezone
        try:
            self._default_tz = ZoneInfo(self._default_tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {self._default_tz_name!r}, falling back to UTC")
            self._default_tz_name = "UTC"
            self._default_tz = ZoneInfo("UTC")

    @property
    def default_timezone(self) -> str:
        """Get the default timezone name."""
        return self._default_tz_name

    @property
    def tzinfo(self) -> tzinfo:
        return self._default_tz

    def now(self) -> datetime:
        """Get current time in user's timezone."""
        return datetime.now(self._default_tz)

    def localize(self, dt: datetime, timezone: str | None = None) -> datetime:
        """Attach timezone info to a naive datetime or convert an aware one.

        Args:
            dt: Datetime to localize (naive or aware)
            timezone: Target timezone. Defaults to user timezone.

        Returns:
            Aware datetime in the target timezone
        """
        tz = ZoneInfo(timezone) if timezone else self._default_tz
        if dt.tzinfo is None:
            # Naive datetime: assume it represents wall-clock time in target timezone
            return dt.replace(tzinfo=tz)
        return dt.astimezone(tz)

    def resolve_now(self, now: datetime | None) -> datetime:
        """Return the reference time for relative-date parsing.

        An explicit ``now`` is used as given (naive values are localized);
        otherwise the current time in the user's timezone.
        """
        if now is None:
            return self.now()
        if now.tzinfo is None:
            return self.localize(now)
        return now

    @staticmethod
    def format_for_display(dt: datetime) -> str:
        """Format a time of day for display, e.g. "2pm" or "3:30pm"."""
        hour = dt.hour
        minute = dt.minute

        if hour == 0:
            time_str = "12"
            ampm = "am"
        elif hour < 12:
            time_str = str(hour)
            ampm = "am"
        elif hour == 12:
            time_str = "12"
            ampm = "pm"
        else:
            time_str = str(hour - 12)
            ampm = "pm"

        if minute > 0:
            time_str = f"{time_str}:{minute:02d}"

        return f"{time_str}{ampm}"


# Module-level singleton
_timezone_service: TimezoneService | None = None


def get_timezone_service(default_timezone: str | None = None) -> TimezoneService:
    """Get the singleton TimezoneService instance.

    Args:
        default_timezone: Optional timezone to use. Only used on first call.

    Returns:
        TimezoneService instance
    """
    global _timezone_service
    if _timezone_service is None:
        _timezone_service = TimezoneService(default_timezone)
    return _timezone_service


def reset_timezone_service() -> None:
    """Reset the singleton (useful for testing)."""
    global _timezone_service
    _timezone_service = None
