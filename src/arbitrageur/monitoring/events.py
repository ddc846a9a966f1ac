"""Structured decision events.

Every decision point logs a named event with key=value params, e.g.::

    [Spread] market=vETH ftxPrice=1800.5 curShortSpread=0.0061 ...

The event name and raw params are also attached to the LogRecord as
``record.event`` / ``record.params`` for log shippers and tests.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any


def _format_value(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def format_params(params: dict[str, Any]) -> str:
    return " ".join(f"{key}={_format_value(val)}" for key, val in params.items())


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **params: Any,
) -> None:
    """Log a structured decision event."""
    if params:
        logger.log(
            level, "[%s] %s", event, format_params(params),
            extra={"event": event, "params": params},
        )
    else:
        logger.log(level, "[%s]", event, extra={"event": event, "params": params})


def log_error_event(
    logger: logging.Logger,
    event: str,
    err: BaseException | None = None,
    **params: Any,
) -> None:
    """Log an error event, with traceback when an exception is given."""
    if err is not None:
        params = {"err": repr(err), **params}
    logger.error(
        "[%s] %s", event, format_params(params),
        exc_info=err if err is not None else None,
        extra={"event": event, "params": params},
    )
