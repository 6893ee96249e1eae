"""FastAPI server for the browser terminal.

Serves the terminal WebSocket and a small REST surface over the
history store::

    GET  /health                          -> {"status": "ok", ...}
    POST /api/sessions                    -> new Session
    GET  /api/sessions/{id}               -> Session (404 if absent)
    GET  /api/sessions/{id}/commands      -> command history, oldest first
    GET  /api/sessions/{id}/files         -> synthetic file tree
    WS   /ws                              <- init / command / resize
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import APIRouter, FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from webterminal.config.settings import Settings, load_settings
from webterminal.domain.models import CommandRecord, FileNode, Session
from webterminal.endpoint.handler import ConnectionHandler
from webterminal.execution.executor import ProcessExecutor
from webterminal.execution.interceptor import CommandInterceptor
from webterminal.sandbox.registry import SessionRegistry
from webterminal.storage.base import HistoryStore
from webterminal.storage.memory import MemoryHistoryStore
from webterminal.storage.recorder import CommandRecorder

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str = "ok"
    active_connections: int = 0


def create_app(
    settings: Settings | None = None,
    store: HistoryStore | None = None,
    executor: ProcessExecutor | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or Settings()
    store = store or MemoryHistoryStore()
    registry = SessionRegistry(store, settings.sandbox)
    interceptor = CommandInterceptor(registry)
    executor = executor or ProcessExecutor.from_config(settings.executor)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # The queue binds to the running loop, so build it here
        recorder = CommandRecorder(store, queue_size=settings.history.queue_size)
        app.state.recorder = recorder
        await recorder.start()
        logger.info("Terminal server started (sandboxes under %s)", settings.sandbox.root)
        yield
        await recorder.stop()
        logger.info("Terminal server stopped")

    app = FastAPI(
        title="webterminal",
        description="Browser terminal backed by per-session sandboxes",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.registry = registry
    app.state.interceptor = interceptor
    app.state.executor = executor

    @app.get("/health")
    async def health_check() -> HealthResponse:
        return HealthResponse(status="ok", active_connections=registry.active_connections)

    api = APIRouter(prefix=settings.server.api_prefix)

    @api.post("/sessions")
    async def create_session() -> Session:
        try:
            return await registry.create_session()
        except Exception as e:
            logger.exception("Failed to create session")
            raise HTTPException(status_code=500, detail="Failed to create session") from e

    @api.get("/sessions/{session_id}")
    async def get_session(session_id: str) -> Session:
        session = await store.get_session(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    @api.get("/sessions/{session_id}/commands")
    async def get_command_history(
        session_id: str,
        limit: int = Query(default=settings.history.default_limit, gt=0, le=1000),
    ) -> list[CommandRecord]:
        return await store.get_command_history(session_id, limit=limit)

    @api.get("/sessions/{session_id}/files")
    async def get_file_tree(session_id: str) -> list[FileNode]:
        return await store.get_file_tree(session_id)

    app.include_router(api)

    @app.websocket(settings.server.ws_path)
    async def terminal_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        handler = ConnectionHandler(
            send=websocket.send_json,
            registry=registry,
            interceptor=interceptor,
            executor=executor,
            recorder=app.state.recorder,
        )
        await handler.open()
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                payload = message.get("text")
                if payload is None:
                    payload = message.get("bytes") or b""
                await handler.handle_text(payload)
        except WebSocketDisconnect as e:
            logger.debug("Connection %s disconnected (code=%s)", handler.connection_id, e.code)
        finally:
            await handler.close()

    return app


def main() -> None:
    """Entry point for running the server standalone."""
    settings = load_settings()
    app = create_app(settings)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)


if __name__ == "__main__":
    main()
