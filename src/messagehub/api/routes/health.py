"""Liveness and status endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from messagehub.errors import PersistenceFailure
from messagehub.models import Topic

router = APIRouter(tags=["health"])


@router.get("/test", response_class=PlainTextResponse)
async def liveness() -> str:
    """Confirm the process is reachable."""
    return "Server is up and running!"


@router.get("/health")
async def health(request: Request) -> dict:
    """Message count and live subscriber counts per topic."""
    store = request.app.state.store
    broadcaster = request.app.state.broadcaster

    try:
        messages: int | str = await store.count()
    except PersistenceFailure as e:
        messages = f"error: {e}"

    return {
        "status": "ok",
        "messages": messages,
        "broadcaster_closed": broadcaster.closed,
        "subscribers": {t.value: broadcaster.subscriber_count(t) for t in Topic},
    }
