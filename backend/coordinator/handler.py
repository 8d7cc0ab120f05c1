"""
Runtime execution shell for one realtime session's protocol handling.

Responsibilities:
- Own handler state
- Call pure reducer
- Execute commands with side effects (send client events, timers, logging)
- Schedule and cancel follow-up timers
- Convert timer expiry into reducer inputs
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime
from typing import Awaitable, Callable, Sequence, Any

from constants import FOLLOWUP_DELAY_MS, UPDATE_TIMESTAMP_FORMAT
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
    InputType,
    SessionActivated,
    SessionDeactivated,
    SessionUpdateSubmitted,
)
from coordinator.reducer import reduce
from coordinator.state import HandlerState
from observability.logger import log_event
from protocol.server_events import ServerEvent


SendClientEventFn = Callable[[dict[str, Any]], Awaitable[None]]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class SessionProtocolHandler:
    """
    Protocol handler for a single realtime session.

    Responsibilities:
    - Own the authoritative HandlerState
    - Act as the single entry point for every reducer input
      (event log changes, user updates, lifecycle, timers)
    - Invoke the pure reducer and execute emitted commands

    Guarantees:
    - Reducer is called exactly once per input
    - State is updated before any side effects execute
    - Commands are executed in reducer-emitted order
    - Timers re-enter handle_input() when they expire
    """

    def __init__(
        self,
        send_client_event: SendClientEventFn,
        *,
        followup_delay_ms: int = FOLLOWUP_DELAY_MS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._send_client_event = send_client_event
        self._followup_delay_ms = followup_delay_ms
        self._clock = clock
        self._state = HandlerState()
        self._timers: dict[str, asyncio.Task[None]] = {}

    @property
    def state(self) -> HandlerState:
        """
        Return the current immutable handler state.

        Consumers (presentation, gateway) must treat it as read-only.
        """
        return self._state

    @property
    def armed_timer_ids(self) -> tuple[str, ...]:
        """Ids of timer tasks that have not fired or been cancelled yet."""
        return tuple(
            timer_id for timer_id, task in self._timers.items()
            if not task.done()
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def on_events_changed(self, log: Sequence[ServerEvent]) -> None:
        """Reduce a grown event log (oldest first, newest last)."""
        await self.handle_input(
            EventsChanged(
                input_type=InputType.EVENTS_CHANGED,
                ts_ms=_now_ms(),
                log=tuple(log),
                followup_delay_ms=self._followup_delay_ms,
            )
        )

    async def schedule_followup(self, delay_ms: int | None = None) -> None:
        """Arm a one-shot timer that sends the scripted feedback request."""
        await self.handle_input(
            FollowupRequested(
                input_type=InputType.FOLLOWUP_REQUESTED,
                ts_ms=_now_ms(),
                delay_ms=self._followup_delay_ms if delay_ms is None else delay_ms,
            )
        )

    async def submit_session_update(self, instructions: str, voice: str) -> None:
        """
        Send user-tuned instructions and voice.

        Ignored while no session is active. Blank instructions fall back to
        the default instructions.
        """
        await self.handle_input(
            SessionUpdateSubmitted(
                input_type=InputType.SESSION_UPDATE_SUBMITTED,
                ts_ms=_now_ms(),
                instructions=instructions,
                voice=voice,
                timestamp=self._clock().strftime(UPDATE_TIMESTAMP_FORMAT),
            )
        )

    async def on_session_started(self) -> None:
        await self.handle_input(
            SessionActivated(
                input_type=InputType.SESSION_ACTIVATED,
                ts_ms=_now_ms(),
            )
        )

    async def on_session_ended(self) -> None:
        """Reset all state and cancel every pending follow-up."""
        await self.handle_input(
            SessionDeactivated(
                input_type=InputType.SESSION_DEACTIVATED,
                ts_ms=_now_ms(),
            )
        )

    async def set_session_active(self, active: bool) -> None:
        """Edge-triggered lifecycle signal from the transport."""
        if active == self._state.session_active:
            return

        if active:
            await self.on_session_started()
        else:
            await self.on_session_ended()

    async def shutdown(self) -> None:
        """
        Clean shutdown of the handler.

        Tears the session down, then waits for cancelled timer tasks.
        Called by the gateway when the client disconnects.
        """
        await self.on_session_ended()

        tasks = list(self._timers.values())
        self._timers.clear()
        for task in tasks:
            task.cancel()

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Reducer dispatch
    # ------------------------------------------------------------------

    async def handle_input(self, inp: HandlerInput) -> None:
        """
        Process a single input through the reduction pipeline.

        Processing steps:
        1. Pass the current state and input to the pure reducer
        2. Swap in the new handler state
        3. Execute all emitted commands sequentially
        """
        new_state, commands = reduce(self._state, inp)
        self._state = new_state

        for cmd in commands:
            await self._execute_command(cmd)

    # ------------------------------------------------------------------
    # Command execution (side effects)
    # ------------------------------------------------------------------

    async def _execute_command(self, cmd: Command) -> None:
        """Execute a single command with side effects."""

        if isinstance(cmd, LogEvent):
            log_event({
                **cmd.event,
                "component": "session_protocol_handler",
            })

        elif isinstance(cmd, SendClientEvent):
            await self._send_client_event(cmd.payload)

        elif isinstance(cmd, StartTimer):
            self._start_timer(
                timer_id=cmd.timer_id,
                duration_ms=cmd.duration_ms,
                generation=cmd.generation,
            )

        elif isinstance(cmd, CancelTimer):
            self._cancel_timer(cmd.timer_id)

        else:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "COMMAND_NOT_IMPLEMENTED",
                "command_type": type(cmd).__name__,
            })

    # ------------------------------------------------------------------
    # Timer management
    # ------------------------------------------------------------------

    def _start_timer(
        self,
        *,
        timer_id: str,
        duration_ms: int,
        generation: int,
    ) -> None:
        """
        Start a follow-up timer that feeds FollowupDue back into the reducer.

        Timer ids are unique per arm, so timers never replace each other.
        """

        async def _timer_task() -> None:
            try:
                await asyncio.sleep(duration_ms / 1000.0)
            except asyncio.CancelledError:
                # Timer was cancelled - this is normal
                return

            self._timers.pop(timer_id, None)
            try:
                await self.handle_input(
                    FollowupDue(
                        input_type=InputType.FOLLOWUP_DUE,
                        ts_ms=_now_ms(),
                        timer_id=timer_id,
                        generation=generation,
                    )
                )
            except Exception as e:  # pylint: disable=broad-exception-caught
                # Timer tasks are never awaited
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "TIMER_CALLBACK_FAILED",
                    "component": "session_protocol_handler",
                    "timer_id": timer_id,
                    "error": repr(e),
                })

        self._timers[timer_id] = asyncio.create_task(_timer_task())

    def _cancel_timer(self, timer_id: str) -> None:
        """
        Cancel an in-flight timer if it exists.

        Idempotent: safe to call even if timer doesn't exist.
        """
        task = self._timers.pop(timer_id, None)
        if task is not None and not task.done():
            task.cancel()
