"""Plain request/response endpoints for the message collection."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from messagehub.errors import MessageNotFound, PersistenceFailure, ValidationError
from messagehub.filters import coerce_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


class MessageBody(BaseModel):
    content: str | None = None
    word: str | None = None


@router.get("")
async def list_messages(request: Request) -> list[dict]:
    """The full collection in insertion order."""
    try:
        messages = await request.app.state.store.list()
    except PersistenceFailure:
        logger.error("Error listing messages", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")
    return [m.to_dict() for m in messages]


@router.post("")
async def create_message(request: Request, body: MessageBody = MessageBody()) -> dict:
    """Create a message. ``content`` must be a non-empty string."""
    if not body.content:
        raise HTTPException(status_code=400, detail="Content is required")

    gateway = request.app.state.gateway
    try:
        message = await gateway.create_message(body.content, body.word)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceFailure:
        logger.error("Error adding message", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")
    return message.to_dict()


@router.put("/{message_id}")
async def update_message(
    message_id: str,
    request: Request,
    body: MessageBody = MessageBody(),
) -> dict:
    """Partially update a message; omitted fields keep their value."""
    numeric_id = coerce_id(message_id)
    if numeric_id is None:
        raise HTTPException(status_code=400, detail="Invalid ID format")

    gateway = request.app.state.gateway
    try:
        message = await gateway.update_message(numeric_id, body.content, body.word)
    except MessageNotFound:
        raise HTTPException(status_code=404, detail="Message not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceFailure:
        logger.error("Error updating message", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")
    return message.to_dict()
