"""
Input definitions for the session protocol reducer.

Rules:
- Inputs describe facts that have occurred (or user intents that arrived).
- Inputs carry data only (no behavior).
- All reducer decisions are based on these inputs.
- No clocks, no timers, no async, no side effects.

Timer inputs carry the session generation for stale gating.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from constants import FOLLOWUP_DELAY_MS
from protocol.server_events import ServerEvent


# =============================================================================
# Input Type Enumeration
# =============================================================================

class InputType(str, Enum):
    """
    Canonical input types understood by the reducer.

    Every input type must be explicitly handled by the reducer.
    """

    # Event log
    EVENTS_CHANGED = "EVENTS_CHANGED"

    # Follow-up turn
    FOLLOWUP_REQUESTED = "FOLLOWUP_REQUESTED"
    FOLLOWUP_DUE = "FOLLOWUP_DUE"

    # User tuning
    SESSION_UPDATE_SUBMITTED = "SESSION_UPDATE_SUBMITTED"

    # Session lifecycle
    SESSION_ACTIVATED = "SESSION_ACTIVATED"
    SESSION_DEACTIVATED = "SESSION_DEACTIVATED"


# =============================================================================
# Base Input
# =============================================================================

@dataclass(frozen=True)
class HandlerInput:
    """
    Base reducer input.

    All inputs must specify:
    - input_type: discriminant
    - ts_ms: timestamp provided by the caller (or fake in tests)
    """

    input_type: InputType
    ts_ms: int


# =============================================================================
# Event log
# =============================================================================

@dataclass(frozen=True)
class EventsChanged(HandlerInput):
    """
    The server event log grew.

    `log` is ordered oldest first; log[-1] is the most recent arrival.
    Palette tool calls in the newest event arm follow-ups after
    `followup_delay_ms`.
    """
    log: Sequence[ServerEvent]
    followup_delay_ms: int = FOLLOWUP_DELAY_MS


# =============================================================================
# Follow-up
# =============================================================================

@dataclass(frozen=True)
class FollowupRequested(HandlerInput):
    """Caller asked for a follow-up response.create after `delay_ms`."""
    delay_ms: int


@dataclass(frozen=True)
class FollowupDue(HandlerInput):
    """A follow-up timer expired."""
    timer_id: str
    generation: int


# =============================================================================
# User tuning
# =============================================================================

@dataclass(frozen=True)
class SessionUpdateSubmitted(HandlerInput):
    """
    User submitted new instructions / voice.

    `timestamp` is the display form of the submission time.
    """
    instructions: str
    voice: str
    timestamp: str


# =============================================================================
# Lifecycle
# =============================================================================

@dataclass(frozen=True)
class SessionActivated(HandlerInput):
    """Transport reports the session became active."""


@dataclass(frozen=True)
class SessionDeactivated(HandlerInput):
    """Transport reports the session ended."""
