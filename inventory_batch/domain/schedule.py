"""
Pure delay parsing for the job queue.

Contract:
    ``parse_delay(expression)`` turns a human delay such as ``"30 seconds"``,
    ``"5 minutes"`` or ``"now"`` into a timedelta.  PURE -- no clock reads;
    the queue adds the delay to its injected clock.

Architecture: inventory_batch/domain.  ZERO I/O.
"""

from __future__ import annotations

import re
from datetime import timedelta

from inventory_kernel.exceptions import InvalidScheduleDelayError

_DELAY_PATTERN = re.compile(
    r"^\s*(?:in\s+)?(\d+)\s*(second|sec|minute|min|hour|day)s?\s*$",
    re.IGNORECASE,
)

_UNIT_SECONDS = {
    "second": 1,
    "sec": 1,
    "minute": 60,
    "min": 60,
    "hour": 3600,
    "day": 86400,
}


def parse_delay(expression: str | int | timedelta) -> timedelta:
    """Parse a delay expression.

    Accepts ``"now"``, ``"<amount> <unit>"`` (seconds, minutes, hours or
    days, singular or plural, optionally prefixed with ``in``), a number of
    seconds, or a timedelta.

    Raises:
        InvalidScheduleDelayError: If the expression cannot be parsed or is
            negative.
    """
    if isinstance(expression, timedelta):
        if expression < timedelta(0):
            raise InvalidScheduleDelayError(str(expression))
        return expression

    if isinstance(expression, bool):
        raise InvalidScheduleDelayError(str(expression))

    if isinstance(expression, int):
        if expression < 0:
            raise InvalidScheduleDelayError(str(expression))
        return timedelta(seconds=expression)

    text = str(expression).strip().lower()
    if text == "now":
        return timedelta(0)

    match = _DELAY_PATTERN.match(text)
    if match is None:
        raise InvalidScheduleDelayError(str(expression))

    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNIT_SECONDS[unit])
