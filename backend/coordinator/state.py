"""
Authoritative session protocol handler state.

Rules:
- This dataclass is a pure data model.
- It contains ALL state the reducer may ever need.
- No behavior, no helpers, no derived logic.
"""

from __future__ import annotations

from dataclasses import dataclass

from coordinator.palette import PaletteOutcome
from protocol.server_events import ToolInvocation


@dataclass(frozen=True)
class HandlerState:
    """Immutable snapshot of all handler-owned state."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    session_active: bool = False

    # Bumped on every activation; timers armed in an older generation are stale
    generation: int = 0

    # True once the tool registration was sent for this session
    initialized: bool = False

    # ------------------------------------------------------------------
    # Tool invocations
    # ------------------------------------------------------------------
    last_tool_invocation: ToolInvocation | None = None
    last_palette: PaletteOutcome | None = None
    tool_invocations_seen: int = 0

    # ------------------------------------------------------------------
    # User tuning
    # ------------------------------------------------------------------
    last_update_timestamp: str | None = None

    # ------------------------------------------------------------------
    # Follow-up timers (ids are the handles the handler cancels by)
    # ------------------------------------------------------------------
    pending_followup_timers: tuple[str, ...] = ()
    followup_seq: int = 0

    # ------------------------------------------------------------------
    # Event log bookkeeping
    # ------------------------------------------------------------------
    # Length of the log at the last EventsChanged; a log that has not
    # grown is not re-reduced
    events_reduced: int = 0
