"""Event-style logging helper shared by routers and services."""

from __future__ import annotations

import logging
from typing import Any


def structured_log(
    logger: logging.Logger,
    level: str,
    event: str,
    /,
    **fields: Any,
) -> None:
    """Emit ``event`` as the log message with ``fields`` attached as extras.

    The JSON formatter reads the event name from the message, so callers never
    pass ``event`` as a field. ``exc_info=True`` is forwarded to the logging
    call instead of being attached as a field.

    Usage:
        structured_log(logger, "info", "profiles.created", user_id=1, profile_id=5)
    """
    exc_info = fields.pop("exc_info", None)
    log_method = getattr(logger, level.lower())
    log_method(event, extra=fields, exc_info=exc_info)
