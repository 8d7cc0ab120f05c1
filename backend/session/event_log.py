"""
Append-only record of server events observed in the current session.

Ordering: index 0 is the oldest event, index -1 the newest. Sources that
deliver newest-first lists are normalised once, at construction.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence, overload

from protocol.server_events import ServerEvent


class EventLog(Sequence[ServerEvent]):
    """
    Ordered server event log.

    Events are never mutated or removed while the session lives; clear()
    exists only for session teardown.
    """

    def __init__(self, events: Iterable[ServerEvent] = ()) -> None:
        self._events: list[ServerEvent] = list(events)

    @classmethod
    def from_newest_first(cls, events: Iterable[ServerEvent]) -> EventLog:
        return cls(reversed(list(events)))

    # ------------------------------------------------------------------
    # Sequence protocol
    # ------------------------------------------------------------------

    @overload
    def __getitem__(self, index: int) -> ServerEvent: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[ServerEvent]: ...

    def __getitem__(self, index: int | slice) -> ServerEvent | Sequence[ServerEvent]:
        if isinstance(index, slice):
            return tuple(self._events[index])
        return self._events[index]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[ServerEvent]:
        return iter(self._events)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def append(self, event: ServerEvent) -> None:
        self._events.append(event)

    def extend(self, events: Iterable[ServerEvent]) -> None:
        self._events.extend(events)

    def clear(self) -> None:
        self._events.clear()

