"""Sentry error tracking integration for Maxwell.

This module provides Sentry SDK initialization and thin wrappers that are
safe to call whether or not Sentry was initialized.

Usage:
    from maxwell.sentry import init_sentry
    init_sentry(dsn=settings.sentry_dsn)

    from maxwell.sentry import capture_exception
    try:
        risky_operation()
    except Exception as e:
        capture_exception(e)
        raise

User utterances are personal data: the before_send hook redacts them from
events, along with secrets.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, cast

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

if TYPE_CHECKING:
    from sentry_sdk._types import Event, Hint

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

SENSITIVE_KEYS = frozenset({
    "token",
    "api_key",
    "apikey",
    "secret",
    "password",
    "authorization",
    "bearer",
    "sentry_dsn",
})

# Keys that carry what the user typed, or what we extracted from it
USER_CONTENT_KEYS = frozenset({
    "text",
    "input",
    "utterance",
    "title",
    "content",
    "description",
    "query",
    "topic",
    "attendees",
    "location",
})

# Module state
_initialized = False


def init_sentry(
    dsn: str | None = None,
    environment: str = "production",
    release: str | None = None,
    traces_sample_rate: float = 0.0,
    debug: bool = False,
) -> bool:
    """Initialize Sentry SDK for error tracking.

    Args:
        dsn: Sentry DSN. If None, reads from SENTRY_DSN env var.
             Empty/None DSN disables Sentry (safe for development).
        environment: Environment name (production, staging, development).
        release: Release version. If None, auto-detected from package version.
        traces_sample_rate: Sample rate for performance tracing (0.0-1.0).
        debug: Enable Sentry debug mode for troubleshooting.

    Returns:
        True if Sentry was initialized, False if skipped.
    """
    global _initialized

    if _initialized:
        logger.debug("Sentry already initialized")
        return True

    if dsn is None:
        dsn = os.environ.get("SENTRY_DSN", "")

    # Empty DSN disables Sentry (expected in development)
    if not dsn:
        logger.info("No SENTRY_DSN configured, error tracking disabled")
        return False

    if release is None:
        from importlib.metadata import PackageNotFoundError, version

        try:
            release = f"maxwell-assistant@{version('maxwell-assistant')}"
        except PackageNotFoundError:
            release = "maxwell-assistant@unknown"

    # Breadcrumbs from INFO, events from ERROR
    logging_integration = LoggingIntegration(
        level=logging.INFO,
        event_level=logging.ERROR,
    )

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=traces_sample_rate,
        debug=debug,
        integrations=[logging_integration],
        send_default_pii=False,
        attach_stacktrace=True,
        before_send=_before_send,
    )

    _initialized = True
    logger.info(f"Sentry initialized: environment={environment}, release={release}")
    return True


def _before_send(event: Event, hint: Hint) -> Event | None:
    """Redact secrets and user content before an event leaves the process."""
    if "extra" in event:
        _scrub_dict(cast(dict[str, Any], event["extra"]))

    if "contexts" in event:
        _scrub_dict(cast(dict[str, Any], event["contexts"]))

    if "breadcrumbs" in event:
        breadcrumbs = cast(dict[str, Any], event["breadcrumbs"])
        for breadcrumb in breadcrumbs.get("values", []):
            if "data" in breadcrumb:
                _scrub_dict(breadcrumb["data"])

    return event


def _scrub_dict(data: dict[str, Any]) -> None:
    """Redact sensitive and user-content keys from a dictionary in-place."""
    for key in list(data.keys()):
        lowered = str(key).lower()
        if lowered in SENSITIVE_KEYS or lowered in USER_CONTENT_KEYS:
            data[key] = REDACTED
        elif isinstance(data[key], dict):
            _scrub_dict(data[key])


def set_tag(key: str, value: str) -> None:
    """Set a tag on the current Sentry scope."""
    if not _initialized:
        return

    sentry_sdk.set_tag(key, value)


def set_context(name: str, data: dict[str, Any]) -> None:
    """Set additional context data on the current Sentry scope.

    Args:
        name: Context name (e.g., "cli").
        data: Context data dictionary.
    """
    if not _initialized:
        return

    sentry_sdk.set_context(name, data)


def capture_exception(exception: BaseException | None = None) -> str | None:
    """Capture an exception and send to Sentry.

    Args:
        exception: The exception to capture. If None, captures current exception.

    Returns:
        Event ID if captured, None otherwise.
    """
    if not _initialized:
        return None

    return sentry_sdk.capture_exception(exception)


def flush(timeout: float = 2.0) -> None:
    """Flush pending Sentry events before shutdown."""
    if not _initialized:
        return

    sentry_sdk.flush(timeout=timeout)


def is_enabled() -> bool:
    """Check if Sentry is enabled and initialized."""
    return _initialized
