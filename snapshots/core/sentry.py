"""Sentry SDK integration for snapshot runs.

Captures the exception that aborts a CI snapshot run.

Key decisions:
  - `send_default_pii=False`: no user data sent by default.
  - `before_send` hook scrubs any event field whose key contains a
    sensitive keyword (token, secret, password, dsn). Publish tokens are
    pushed through clone URLs, so `redact_text` is applied to
    exception messages as well.
  - No-op when the DSN is empty so local runs are unaffected.
"""

from __future__ import annotations

import logging
from typing import Any

import sentry_sdk

from snapshots.git.urls import redact_text

logger = logging.getLogger(__name__)

_SENSITIVE_KEYS = frozenset({"api_key", "secret", "password", "token", "dsn"})


def _scrub_secrets(event: dict[str, Any], hint: Any) -> dict[str, Any]:
    """Sentry before_send hook: redact values for sensitive keys."""
    _scrub_dict(event.get("extra", {}))
    for exc in event.get("exception", {}).get("values", []):
        value = exc.get("value")
        if isinstance(value, str):
            exc["value"] = redact_text(value)
    return event


def _scrub_dict(d: dict[str, Any]) -> None:
    """Recursively redact sensitive values in-place."""
    for key in list(d.keys()):
        if any(sensitive in key.lower() for sensitive in _SENSITIVE_KEYS):
            d[key] = "[REDACTED]"
        elif isinstance(d[key], dict):
            _scrub_dict(d[key])


def init_sentry(dsn: str, environment: str = "ci") -> None:
    """Initialise the Sentry SDK. Empty ``dsn`` disables it."""
    if not dsn or not dsn.strip():
        logger.debug("Sentry DSN not configured, skipping initialisation")
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        send_default_pii=False,
        before_send=_scrub_secrets,
    )
    logger.info("Sentry initialised (environment=%s)", environment)
