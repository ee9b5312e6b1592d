"""Structured query/mutation endpoint and its subscription WebSocket."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from messagehub.api import operations
from messagehub.broadcaster import Broadcaster, Subscription
from messagehub.errors import MessageHubError, PersistenceFailure, ValidationError
from messagehub.models import Event

logger = logging.getLogger(__name__)

router = APIRouter(tags=["graphql"])

SUBPROTOCOL = "graphql-transport-ws"


class OperationRequest(BaseModel):
    operation: str
    variables: dict[str, Any] | None = None


@router.post("/graphql")
async def run_operation(body: OperationRequest, request: Request) -> dict:
    """Execute a query or mutation.

    Execution errors are reported in ``errors`` with a 200 status.
    """
    gateway = request.app.state.gateway
    try:
        result = await operations.execute(gateway, body.operation, body.variables or {})
    except MessageHubError as e:
        if isinstance(e, PersistenceFailure):
            logger.error("Error running %s", body.operation, exc_info=True)
        return {"data": None, "errors": [operations.error_entry(e)]}
    return {"data": {body.operation: result}}


class _SubscriptionSession:
    """Subscriptions multiplexed over one WebSocket connection."""

    def __init__(self, ws: WebSocket, broadcaster: Broadcaster) -> None:
        self._ws = ws
        self._broadcaster = broadcaster
        self._tasks: dict[str, asyncio.Task] = {}
        self._send_lock = asyncio.Lock()

    async def send(self, frame: dict) -> None:
        async with self._send_lock:
            await self._ws.send_json(frame)

    async def send_error(self, op_id: str | None, message: str) -> None:
        await self.send(
            {
                "type": "error",
                "id": op_id,
                "payload": [{"message": message, "extensions": {"code": "BAD_USER_INPUT"}}],
            }
        )

    async def handle(self, frame: dict) -> None:
        kind = frame.get("type")
        if kind == "connection_init":
            await self.send({"type": "connection_ack"})
        elif kind == "ping":
            await self.send({"type": "pong"})
        elif kind == "pong":
            pass
        elif kind == "subscribe":
            await self._subscribe(frame)
        elif kind == "complete":
            self._cancel(frame.get("id"))
        else:
            await self.send_error(frame.get("id"), f"Unknown message type '{kind}'")

    async def _subscribe(self, frame: dict) -> None:
        op_id = frame.get("id")
        if not isinstance(op_id, str) or not op_id:
            await self.send_error(None, "Subscription id is required")
            return
        if op_id in self._tasks:
            await self.send_error(op_id, f"Subscriber for {op_id} already exists")
            return

        payload = frame.get("payload") or {}
        variables = None
        if isinstance(payload, dict):
            variables = payload.get("variables") or {}
        if not isinstance(variables, dict):
            await self.send_error(op_id, "Invalid subscribe payload")
            return
        operation = payload.get("operation")
        try:
            sub, events = operations.open_subscription(self._broadcaster, operation, variables)
        except (ValidationError, RuntimeError) as e:
            await self.send_error(op_id, str(e))
            return

        self._tasks[op_id] = asyncio.create_task(
            self._pump(op_id, operation, sub, events),
            name=f"subscription-{op_id}",
        )

    async def _pump(
        self,
        op_id: str,
        operation: str,
        sub: Subscription,
        events: AsyncIterator[Event],
    ) -> None:
        try:
            async with sub:
                async for event in events:
                    await self.send(
                        {
                            "type": "next",
                            "id": op_id,
                            "payload": {"data": {operation: event.message.to_dict()}},
                        }
                    )
            # Broadcaster ended the stream (shutdown or slow consumer)
            await self.send({"type": "complete", "id": op_id})
        except Exception:
            logger.debug("Subscription %s stopped", op_id, exc_info=True)
        finally:
            if self._tasks.get(op_id) is asyncio.current_task():
                del self._tasks[op_id]

    def _cancel(self, op_id: object) -> None:
        task = self._tasks.pop(op_id, None) if isinstance(op_id, str) else None
        if task is not None:
            task.cancel()

    async def close(self) -> None:
        """Cancel every subscription so each deregisters from the broadcaster."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


@router.websocket("/graphql")
async def graphql_ws(ws: WebSocket) -> None:
    """Stream subscription results.

    Connect: ws://host:port/graphql
    Send: {"type": "subscribe", "id": "1",
           "payload": {"operation": "messageUpdated", "variables": {"id": "5"}}}
    Receives: {"type": "next", "id": "1",
               "payload": {"data": {"messageUpdated": {...}}}}
    """
    requested = ws.scope.get("subprotocols") or []
    await ws.accept(subprotocol=SUBPROTOCOL if SUBPROTOCOL in requested else None)
    session = _SubscriptionSession(ws, ws.app.state.broadcaster)

    try:
        while True:
            raw = await ws.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                frame = None
            if not isinstance(frame, dict):
                await ws.close(code=4400, reason="Invalid message")
                break
            await session.handle(frame)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.debug("WebSocket error", exc_info=True)
    finally:
        await session.close()
