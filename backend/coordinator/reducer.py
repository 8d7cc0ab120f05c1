"""
Pure session protocol reducer.

(state, input) -> (new_state, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every input type is handled or explicitly ignored (logged).

Event log convention: oldest first, log[-1] is the newest arrival.
Rules applied on EventsChanged, in order:
1. Initialization: while not initialized, any session.created in the log
   triggers the tool registration (once per session).
2. Tool completion: only the newest event is inspected, and only when the
   log has changed since the previous pass.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from constants import PALETTE_TOOL_NAME, TIMER_FOLLOWUP_PREFIX
from coordinator.commands import (
    CancelTimer,
    Command,
    LogEvent,
    SendClientEvent,
    StartTimer,
)
from coordinator.events import (
    EventsChanged,
    FollowupDue,
    FollowupRequested,
    HandlerInput,
    SessionActivated,
    SessionDeactivated,
    SessionUpdateSubmitted,
)
from coordinator.palette import evaluate_invocation
from coordinator.state import HandlerState
from protocol.client_events import (
    followup_request_event,
    session_update_event,
    tool_registration_event,
)
from protocol.server_events import ResponseDone, SessionCreated
from registry.instructions import DEFAULT_INSTRUCTIONS


# =============================================================================
# Small helpers
# =============================================================================

def _timer_id_followup(generation: int, seq: int) -> str:
    return f"{TIMER_FOLLOWUP_PREFIX}:{generation}:{seq}"


def _log(
    state: HandlerState,
    inp: HandlerInput,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    return LogEvent(
        event={
            "ts_ms": inp.ts_ms,
            "input_type": inp.input_type.value,
            "decision": decision,
            "session_active": state.session_active,
            "generation": state.generation,
            "initialized": state.initialized,
            "pending_followups": len(state.pending_followup_timers),
            "details": details or {},
        }
    )


def _logs_last(commands: tuple[Command, ...]) -> tuple[Command, ...]:
    non_logs: list[Command] = []
    logs: list[Command] = []

    for command in commands:
        if isinstance(command, LogEvent):
            logs.append(command)
        else:
            non_logs.append(command)

    return tuple(non_logs + logs)


def _ignore(
    state: HandlerState, inp: HandlerInput, reason: str
) -> tuple[HandlerState, tuple[Command, ...]]:
    return state, (_log(state, inp, "ignore", {"reason": reason}),)


def _arm_followup(
    state: HandlerState, delay_ms: int
) -> tuple[HandlerState, StartTimer]:
    """Allocate a fresh timer id; every follow-up fires independently."""
    timer_id = _timer_id_followup(state.generation, state.followup_seq)
    new_state = replace(
        state,
        followup_seq=state.followup_seq + 1,
        pending_followup_timers=state.pending_followup_timers + (timer_id,),
    )
    return new_state, StartTimer(
        timer_id=timer_id,
        duration_ms=delay_ms,
        generation=state.generation,
    )


def _teardown(state: HandlerState) -> tuple[HandlerState, tuple[Command, ...]]:
    """Fresh state in the same generation plus cancels for every pending timer."""
    cancels = tuple(
        CancelTimer(timer_id=timer_id)
        for timer_id in state.pending_followup_timers
    )
    return HandlerState(generation=state.generation), cancels


# =============================================================================
# Reducer
# =============================================================================

def reduce(
    state: HandlerState, inp: HandlerInput
) -> tuple[HandlerState, tuple[Command, ...]]:
    """
    Pure reducer for the session protocol handler.

    Given the current handler state and a single input, returns:
    - the next state
    - a tuple of commands describing required side effects

    Properties:
    - Deterministic: no IO, clocks, or randomness
    - Total: every input is handled or explicitly ignored
    - Generation-safe: ignores follow-up timers from a superseded session
    """
    if isinstance(inp, SessionActivated):
        return _reduce_session_activated(state, inp)

    if isinstance(inp, SessionDeactivated):
        return _reduce_session_deactivated(state, inp)

    if isinstance(inp, EventsChanged):
        return _reduce_events_changed(state, inp)

    if isinstance(inp, FollowupRequested):
        new_state, start = _arm_followup(state, inp.delay_ms)
        return new_state, _logs_last((
            start,
            _log(new_state, inp, "followup_scheduled", {
                "timer_id": start.timer_id,
                "delay_ms": inp.delay_ms,
            }),
        ))

    if isinstance(inp, FollowupDue):
        return _reduce_followup_due(state, inp)

    if isinstance(inp, SessionUpdateSubmitted):
        return _reduce_session_update(state, inp)

    return _ignore(state, inp, "unhandled_input")


# =============================================================================
# Lifecycle
# =============================================================================

def _reduce_session_activated(
    state: HandlerState, inp: SessionActivated
) -> tuple[HandlerState, tuple[Command, ...]]:
    if state.session_active:
        return _ignore(state, inp, "already_active")

    # Timers armed before activation belong to no live session
    cleared, cancels = _teardown(state)
    new_state = replace(
        cleared,
        session_active=True,
        generation=state.generation + 1,
    )
    return new_state, _logs_last(cancels + (
        _log(new_state, inp, "session_activated", {
            "cancelled_timers": len(cancels),
        }),
    ))


def _reduce_session_deactivated(
    state: HandlerState, inp: SessionDeactivated
) -> tuple[HandlerState, tuple[Command, ...]]:
    new_state, cancels = _teardown(state)
    return new_state, _logs_last(cancels + (
        _log(new_state, inp, "session_torn_down", {
            "was_active": state.session_active,
            "cancelled_timers": len(cancels),
        }),
    ))


# =============================================================================
# Event log
# =============================================================================

def _reduce_events_changed(
    state: HandlerState, inp: EventsChanged
) -> tuple[HandlerState, tuple[Command, ...]]:
    log = inp.log
    if not log:
        return _ignore(state, inp, "empty_log")

    # A shorter log means it was replaced, which also counts as a change
    log_changed = len(log) != state.events_reduced

    new_state = state
    cmds: list[Command] = []

    # ------------------------------------------------------------------
    # Rule 1: one-time tool registration
    # ------------------------------------------------------------------
    if not new_state.initialized and any(
        isinstance(event, SessionCreated) for event in log
    ):
        new_state = replace(new_state, initialized=True)
        cmds.append(SendClientEvent(payload=tool_registration_event()))
        cmds.append(_log(new_state, inp, "tools_registered", {
            "tool": PALETTE_TOOL_NAME,
        }))

    # ------------------------------------------------------------------
    # Rule 2: tool completion on the newest event only
    # ------------------------------------------------------------------
    latest = log[-1]
    if log_changed and isinstance(latest, ResponseDone):
        for invocation in latest.function_calls(PALETTE_TOOL_NAME):
            outcome = evaluate_invocation(invocation)
            new_state = replace(
                new_state,
                last_tool_invocation=invocation,
                last_palette=outcome,
                tool_invocations_seen=new_state.tool_invocations_seen + 1,
            )
            new_state, start = _arm_followup(new_state, inp.followup_delay_ms)
            cmds.append(start)

            if outcome.ok:
                cmds.append(_log(new_state, inp, "tool_invocation_recorded", {
                    "call_id": invocation.call_id,
                    "timer_id": start.timer_id,
                }))
            else:
                cmds.append(_log(new_state, inp, "palette_arguments_malformed", {
                    "call_id": invocation.call_id,
                    "error": outcome.error,
                    "timer_id": start.timer_id,
                }))

    new_state = replace(new_state, events_reduced=len(log))

    if not cmds:
        return _ignore(new_state, inp, "no_reaction")

    return new_state, _logs_last(tuple(cmds))


# =============================================================================
# Follow-up
# =============================================================================

def _reduce_followup_due(
    state: HandlerState, inp: FollowupDue
) -> tuple[HandlerState, tuple[Command, ...]]:
    if (
        inp.generation != state.generation
        or inp.timer_id not in state.pending_followup_timers
    ):
        return _ignore(state, inp, "stale_followup")

    new_state = replace(
        state,
        pending_followup_timers=tuple(
            t for t in state.pending_followup_timers if t != inp.timer_id
        ),
    )
    return new_state, _logs_last((
        SendClientEvent(payload=followup_request_event()),
        _log(new_state, inp, "followup_sent", {"timer_id": inp.timer_id}),
    ))


# =============================================================================
# User tuning
# =============================================================================

def _reduce_session_update(
    state: HandlerState, inp: SessionUpdateSubmitted
) -> tuple[HandlerState, tuple[Command, ...]]:
    if not state.session_active:
        return _ignore(state, inp, "session_inactive")

    instructions = inp.instructions.strip() or DEFAULT_INSTRUCTIONS
    new_state = replace(state, last_update_timestamp=inp.timestamp)

    return new_state, _logs_last((
        SendClientEvent(payload=session_update_event(instructions, inp.voice)),
        _log(new_state, inp, "session_update_sent", {
            "voice": inp.voice,
            "used_default_instructions": not inp.instructions.strip(),
        }),
    ))
