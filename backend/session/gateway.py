"""
Session gateway.

Responsibilities:
- Owns the event log, tuning form and protocol handler of one client connection
- Routes inbound JSON messages from the transport-owning client
  -> server events, lifecycle signals, user session updates
- Queues outbound client events and panel snapshots for the route to send
- Logs and drops anything malformed

NOT responsible for:
- Any protocol decisions (handler + reducer own those)
- Establishing the realtime transport (the client owns it)

Inbound message kinds:
    {"kind": "server_event", "event": {...}}
    {"kind": "server_events", "events": [...], "newest_first": bool}
    {"kind": "session_active", "active": bool}
    {"kind": "session_update", "instructions": str, "voice": str}

Outbound message kinds:
    {"kind": "client_event", "event": {...}}
    {"kind": "panel", "panel": {...}}
"""

from __future__ import annotations

import asyncio
import json
import time
from datetime import datetime
from typing import Any, Callable, TYPE_CHECKING
from uuid import uuid4

from constants import FOLLOWUP_DELAY_MS, LOG_PAYLOAD_PREVIEW_CHARS
from coordinator.handler import SessionProtocolHandler
from observability.logger import log_event
from presentation.tool_panel import TuningForm, render_tool_panel
from protocol.server_events import (
    ServerEvent,
    ServerEventError,
    parse_server_event,
)
from registry.instructions import is_known_voice
from session.event_log import EventLog

if TYPE_CHECKING:
    from config import AppConfig


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_connection_id() -> str:
    return f"conn_{uuid4().hex[:12]}"


# ------------------------------------------------------------------
# SessionGateway
# ------------------------------------------------------------------

class SessionGateway:
    """One gateway == one client connection (possibly several sessions over time)."""

    def __init__(
        self,
        *,
        config: AppConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.connection_id = _new_connection_id()
        self.event_log = EventLog()
        self.form = TuningForm()
        self.outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

        followup_delay_ms = (
            config.followup_delay_ms if config is not None else FOLLOWUP_DELAY_MS
        )
        self.handler = SessionProtocolHandler(
            self._send_client_event,
            followup_delay_ms=followup_delay_ms,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Inbound routing
    # ------------------------------------------------------------------

    async def on_json_message(self, payload: str) -> None:
        """Route one inbound JSON message, then publish a fresh panel."""
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, RecursionError) as e:
            self._log("JSON_DECODE_ERROR", {
                "error": str(e),
                "payload_preview": payload[:LOG_PAYLOAD_PREVIEW_CHARS],
            })
            return

        if not isinstance(data, dict):
            self._log("INVALID_MESSAGE", {"reason": "not_an_object"})
            return

        kind = data.get("kind")

        if kind == "server_event":
            await self.on_server_event(data.get("event"))
        elif kind == "server_events":
            events = data.get("events")
            if not isinstance(events, list):
                self._log("INVALID_MESSAGE", {"kind": kind, "reason": "events_not_a_list"})
                return
            await self.on_server_events(events, newest_first=bool(data.get("newest_first")))
        elif kind == "session_active":
            active = data.get("active")
            if not isinstance(active, bool):
                self._log("INVALID_MESSAGE", {"kind": kind, "reason": "active_not_bool"})
                return
            await self.set_session_active(active)
        elif kind == "session_update":
            instructions = data.get("instructions", "")
            voice = data.get("voice")
            if not isinstance(instructions, str) or not isinstance(voice, str):
                self._log("INVALID_MESSAGE", {"kind": kind, "reason": "bad_field_types"})
                return
            await self.on_session_update(instructions, voice)
        else:
            self._log("UNKNOWN_MESSAGE_KIND", {"kind": kind})
            return

        await self.publish_panel()

    async def on_server_event(self, data: Any) -> None:
        event = self._parse(data)
        if event is None:
            return

        self.event_log.append(event)
        await self.handler.on_events_changed(self.event_log)

    async def on_server_events(self, items: list[Any], *, newest_first: bool = False) -> None:
        """Append a batch in one pass; the handler sees a single log change."""
        parsed = [e for e in (self._parse(item) for item in items) if e is not None]
        if not parsed:
            return

        if newest_first:
            parsed = list(EventLog.from_newest_first(parsed))
        self.event_log.extend(parsed)
        await self.handler.on_events_changed(self.event_log)

    async def set_session_active(self, active: bool) -> None:
        was_active = self.handler.state.session_active
        await self.handler.set_session_active(active)

        if was_active and not active:
            self.event_log.clear()
            self.form.reset()

    async def on_session_update(self, instructions: str, voice: str) -> None:
        if not is_known_voice(voice):
            self._log("UNKNOWN_VOICE", {"voice": voice})
            return

        if self.handler.state.session_active:
            self.form.instructions = instructions
            self.form.voice = voice

        await self.handler.submit_session_update(instructions, voice)

    async def on_disconnect(self, reason: str | None = None) -> None:
        """Called when the client connection goes away."""
        await self.handler.shutdown()
        self.event_log.clear()
        self.form.reset()
        self._log("CLIENT_DISCONNECTED", {"reason": reason})

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def panel(self) -> dict[str, Any]:
        return render_tool_panel(self.handler.state, self.form).to_dict()

    async def publish_panel(self) -> None:
        await self.outbox.put({"kind": "panel", "panel": self.panel()})

    async def _send_client_event(self, payload: dict[str, Any]) -> None:
        await self.outbox.put({"kind": "client_event", "event": payload})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _parse(self, data: Any) -> ServerEvent | None:
        try:
            return parse_server_event(data)
        except ServerEventError as e:
            self._log("SERVER_EVENT_REJECTED", {"error": str(e)})
            return None

    def _log(self, event_type: str, details: dict[str, Any]) -> None:
        log_event({
            "ts_ms": _now_ms(),
            "event_type": event_type,
            "connection_id": self.connection_id,
            **details,
        })
