"""Tests for the timezone handling service."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from maxwell.services.calendar import find_free_time
from maxwell.services.timezone import (
    TimezoneService,
    get_timezone_service,
    reset_timezone_service,
)

LA = ZoneInfo("America/Los_Angeles")


class TestTimezoneService:
    """Tests for TimezoneService."""

    def test_explicit_timezone(self):
        service = TimezoneService("America/Los_Angeles")
        assert service.default_timezone == "America/Los_Angeles"
        assert service.tzinfo == LA

    def test_unknown_timezone_falls_back_to_utc(self):
        service = TimezoneService("Not/A_Zone")
        assert service.default_timezone == "UTC"
        assert service.tzinfo == ZoneInfo("UTC")

    def test_now_is_aware(self):
        service = TimezoneService("Europe/London")
        current = service.now()
        assert current.tzinfo is not None
        assert abs(current - datetime.now(ZoneInfo("UTC"))) < timedelta(seconds=5)

    def test_localize_naive_keeps_wall_clock(self):
        service = TimezoneService("America/Los_Angeles")
        result = service.localize(datetime(2026, 10, 12, 14, 0))
        assert result == datetime(2026, 10, 12, 14, 0, tzinfo=LA)

    def test_localize_aware_converts(self):
        service = TimezoneService("America/Los_Angeles")
        utc_time = datetime(2026, 10, 12, 21, 0, tzinfo=ZoneInfo("UTC"))
        result = service.localize(utc_time)
        assert result.hour == 14
        assert result == utc_time

    def test_localize_to_other_timezone(self):
        service = TimezoneService("America/Los_Angeles")
        result = service.localize(datetime(2026, 10, 12, 9, 0), "Europe/Paris")
        assert result.tzinfo == ZoneInfo("Europe/Paris")


class TestResolveNow:
    """The reference time used by the parsers."""

    def setup_method(self):
        self.service = TimezoneService("America/Los_Angeles")

    def test_none_gives_current_time(self):
        result = self.service.resolve_now(None)
        assert result.tzinfo is not None

    def test_naive_is_localized(self):
        result = self.service.resolve_now(datetime(2026, 10, 12, 10, 0))
        assert result == datetime(2026, 10, 12, 10, 0, tzinfo=LA)

    def test_aware_is_unchanged(self):
        reference = datetime(2026, 10, 12, 10, 0, tzinfo=ZoneInfo("Asia/Tokyo"))
        assert self.service.resolve_now(reference) is reference


class TestFormatForDisplay:
    def test_on_the_hour(self):
        assert TimezoneService.format_for_display(datetime(2026, 10, 12, 14, 0)) == "2pm"

    def test_with_minutes(self):
        assert TimezoneService.format_for_display(datetime(2026, 10, 12, 15, 30)) == "3:30pm"

    def test_midnight_and_noon(self):
        assert TimezoneService.format_for_display(datetime(2026, 10, 12, 0, 5)) == "12:05am"
        assert TimezoneService.format_for_display(datetime(2026, 10, 12, 12, 0)) == "12pm"

    def test_morning(self):
        assert TimezoneService.format_for_display(datetime(2026, 10, 12, 9, 0)) == "9am"


class TestSingleton:
    """Tests for the module-level singleton."""

    def setup_method(self):
        reset_timezone_service()

    def teardown_method(self):
        reset_timezone_service()

    def test_first_call_sets_timezone(self):
        service = get_timezone_service("Asia/Tokyo")
        assert service.default_timezone == "Asia/Tokyo"
        assert get_timezone_service("UTC") is service

    def test_reset_creates_new_instance(self):
        first = get_timezone_service("Asia/Tokyo")
        reset_timezone_service()
        assert get_timezone_service("Asia/Tokyo") is not first

    def test_calendar_defaults_to_singleton_zone(self):
        get_timezone_service("America/Los_Angeles")
        slots = find_free_time([], date(2026, 10, 13), 30, working_hours=(9, 17))
        assert slots[0].start.tzinfo == LA
