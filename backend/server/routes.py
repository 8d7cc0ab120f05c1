"""
Route registration for the session coordinator API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Wire one gateway to each WebSocket connection
- Pull dependencies from app.state
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect, FastAPI

from constants import PALETTE_TOOL_NAME
from observability.logger import log_event
from presentation.tool_panel import voice_choices
from registry.instructions import DEFAULT_INSTRUCTIONS, DEFAULT_VOICE
from session.gateway import SessionGateway


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.get("/session/defaults")
    async def session_defaults() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        return {
            "instructions": DEFAULT_INSTRUCTIONS,
            "voice": DEFAULT_VOICE,
            "voices": list(voice_choices()),
            "tool": PALETTE_TOOL_NAME,
        }

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        await ws.accept()

        gateway = SessionGateway(config=app.state.config)
        writer = asyncio.create_task(_drain_outbox(ws, gateway))

        try:
            await gateway.publish_panel()

            while True:
                text = await ws.receive_text()
                await gateway.on_json_message(text)

        except WebSocketDisconnect:
            await gateway.on_disconnect(reason="client_disconnect")

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "WS_FATAL_ERROR",
                "connection_id": gateway.connection_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            await gateway.on_disconnect(reason="server_error")

        finally:
            writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)


async def _drain_outbox(ws: WebSocket, gateway: SessionGateway) -> None:
    """Single writer: sends outbound messages in the order they were queued."""
    while True:
        msg = await gateway.outbox.get()
        await ws.send_text(json.dumps(msg))
