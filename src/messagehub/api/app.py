"""FastAPI application factory and server startup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from messagehub.broadcaster import Broadcaster
from messagehub.gateway import MutationGateway
from messagehub.store import MessageStore

logger = logging.getLogger(__name__)


def create_api(store: MessageStore, broadcaster: Broadcaster) -> FastAPI:
    """Create the FastAPI app around a shared store and broadcaster."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        broadcaster.close()

    app = FastAPI(
        title="messagehub",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Store shared references on app.state
    app.state.store = store
    app.state.broadcaster = broadcaster
    app.state.gateway = MutationGateway(store, broadcaster)

    from messagehub.api.routes import graphql, health, messages

    app.include_router(health.router)
    app.include_router(messages.router)
    app.include_router(graphql.router)

    return app


async def serve(app: FastAPI, host: str = "0.0.0.0", port: int = 4000) -> None:
    """Run uvicorn until the process is stopped."""
    import uvicorn

    cfg = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="info",
        access_log=False,
    )
    server = uvicorn.Server(cfg)
    logger.info("Operations endpoint at http://%s:%d/graphql", host, port)
    logger.info("REST endpoint at http://%s:%d/messages", host, port)
    await server.serve()
