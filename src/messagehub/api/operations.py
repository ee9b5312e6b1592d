"""Operation resolvers for the structured query/mutation surface.

Requests name an operation and pass its variables as JSON:

    {"operation": "updateMessage", "variables": {"id": "1", "word": "hi"}}

Queries and mutations go through ``execute``; subscriptions through
``open_subscription``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from typing import Any

from messagehub.broadcaster import Broadcaster, Subscription
from messagehub.errors import MessageNotFound, ValidationError
from messagehub.filters import coerce_id, message_id_matches, with_filter
from messagehub.gateway import MutationGateway
from messagehub.models import Event, Topic

QUERIES = ("messages",)
MUTATIONS = ("addMessage", "updateMessage")
SUBSCRIPTIONS = ("messageAdded", "messageUpdated")


def _require_id(variables: Mapping[str, Any]) -> int:
    raw = variables.get("id")
    if raw is None:
        raise ValidationError("Variable 'id' of type ID! is required")
    message_id = coerce_id(raw)
    if message_id is None:
        raise ValidationError(f"Variable 'id' got invalid value {raw!r}")
    return message_id


async def execute(
    gateway: MutationGateway,
    operation: str,
    variables: Mapping[str, Any],
) -> Any:
    """Run a query or mutation and return its JSON-ready result."""
    if operation == "messages":
        return [m.to_dict() for m in await gateway.store.list()]

    if operation == "addMessage":
        content = variables.get("content")
        if content is None:
            raise ValidationError("Variable 'content' of type String! is required")
        message = await gateway.create_message(content, variables.get("word"))
        return message.to_dict()

    if operation == "updateMessage":
        message = await gateway.update_message(
            _require_id(variables),
            variables.get("content"),
            variables.get("word"),
        )
        return message.to_dict()

    if operation in SUBSCRIPTIONS:
        raise ValidationError(f"'{operation}' is a subscription; use the WebSocket endpoint")
    raise ValidationError(f"Unknown operation '{operation}'")


def open_subscription(
    broadcaster: Broadcaster,
    operation: str,
    variables: Mapping[str, Any],
) -> tuple[Subscription, AsyncIterator[Event]]:
    """Register a subscriber for a subscription operation.

    Returns the registered subscription (close it to deregister) and the
    event stream to forward, which may be filtered.
    """
    if operation == "messageAdded":
        sub = broadcaster.subscribe(Topic.MESSAGE_ADDED)
        return sub, sub

    if operation == "messageUpdated":
        args = {"id": _require_id(variables)}
        sub = broadcaster.subscribe(Topic.MESSAGE_UPDATED)
        return sub, with_filter(sub, message_id_matches, args)

    if operation in QUERIES or operation in MUTATIONS:
        raise ValidationError(f"'{operation}' is not a subscription")
    raise ValidationError(f"Unknown subscription '{operation}'")


def error_entry(exc: Exception) -> dict:
    """Render an exception as an entry of a response's ``errors`` list."""
    if isinstance(exc, MessageNotFound):
        return {"message": "Message not found", "extensions": {"code": "NOT_FOUND"}}
    if isinstance(exc, ValidationError):
        return {"message": str(exc), "extensions": {"code": "BAD_USER_INPUT"}}
    return {
        "message": "Internal Server Error",
        "extensions": {"code": "INTERNAL_SERVER_ERROR"},
    }
