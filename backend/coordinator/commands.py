"""
Side-effect command definitions for the session protocol handler.

Rules:
- Commands are declarative requests for side effects.
- Commands are emitted by the reducer and executed by the handler.
- No behavior, no async, no I/O, no clocks.
Invariant:
    - All concrete Command subclasses MUST be frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


# =============================================================================
# Command Type Enumeration
# =============================================================================

class CommandType(str, Enum):
    """
    Canonical command types emitted by the reducer.

    Stable discriminants used for logging and handler dispatch.
    """

    # Outbound channel
    SEND_CLIENT_EVENT = "SEND_CLIENT_EVENT"

    # Timers
    START_TIMER = "START_TIMER"
    CANCEL_TIMER = "CANCEL_TIMER"

    # Observability
    LOG_EVENT = "LOG_EVENT"


# =============================================================================
# Base Command
# =============================================================================

class Command:
    """
    Base command type.

    command_type is an explicit discriminant and must never be inferred
    from Python type identity.
    """

    command_type: CommandType


# =============================================================================
# Outbound
# =============================================================================

@dataclass(frozen=True)
class SendClientEvent(Command):
    """Send one JSON client event to the realtime service."""
    payload: dict[str, Any]
    command_type: CommandType = CommandType.SEND_CLIENT_EVENT


# =============================================================================
# Timer Commands
# =============================================================================

@dataclass(frozen=True)
class StartTimer(Command):
    """
    Arm a one-shot follow-up timer.

    On expiration, the handler must feed FollowupDue(timer_id, generation)
    back into the reducer.
    """
    timer_id: str
    duration_ms: int
    generation: int
    command_type: CommandType = CommandType.START_TIMER


@dataclass(frozen=True)
class CancelTimer(Command):
    """Cancel a previously armed timer. Idempotent."""
    timer_id: str
    command_type: CommandType = CommandType.CANCEL_TIMER


# =============================================================================
# Observability Commands
# =============================================================================

@dataclass(frozen=True)
class LogEvent(Command):
    """Request to emit a structured observability event."""
    event: dict[str, Any]
    command_type: CommandType = CommandType.LOG_EVENT
