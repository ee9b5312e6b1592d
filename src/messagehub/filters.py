"""Per-subscription event filtering."""

from __future__ import annotations

import re
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import aclosing
from typing import Any

from messagehub.models import Event

Predicate = Callable[[Event, Mapping[str, Any]], bool]

# Optionally signed ASCII decimal. Rejects "1_0" and non-ASCII digits.
_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


def coerce_id(value: Any) -> int | None:
    """Read a message id from an int or a numeric string.

    Returns None when the value is not an integer id.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and _ID_PATTERN.fullmatch(text):
            return int(text)
        return None
    return None


def message_id_matches(event: Event, args: Mapping[str, Any]) -> bool:
    """True if the event is about the message named by ``args["id"]``.

    The argument is normalized first, so ``"5"`` and ``5`` both match
    message 5. An argument that is not an integer id never matches.
    """
    wanted = coerce_id(args.get("id"))
    return wanted is not None and event.message.id == wanted


async def with_filter(
    events: AsyncIterator[Event],
    predicate: Predicate,
    args: Mapping[str, Any],
) -> AsyncIterator[Event]:
    """Yield only the events for which ``predicate(event, args)`` holds.

    Non-matching events are consumed and dropped. Closing this generator
    closes ``events``.
    """
    async with aclosing(events):
        async for event in events:
            if predicate(event, args):
                yield event
