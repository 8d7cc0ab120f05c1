"""
Server-pushed realtime events as a closed tagged union.

Rules:
- Events describe facts reported by the remote service.
- Events carry data only (no behavior).
- Unknown event types map to UnknownServerEvent rather than failing,
  so newer service versions never break the handler.

Usage example:

    try:
        event = parse_server_event(json.loads(text))
    except ServerEventError as e:
        log_event({"event_type": "SERVER_EVENT_REJECTED", "error": str(e)})
    else:
        log.append(event)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


# -------------------------
# Exceptions
# -------------------------

class ServerEventError(Exception):
    """
    Raised when an inbound payload cannot be an event at all.

    Only structural violations (a non-object payload) raise. Missing or
    oddly typed fields inside an object degrade to empty values.
    """


# =============================================================================
# Event Type Enumeration
# =============================================================================

class ServerEventType(str, Enum):
    """
    Server event types the coordinator understands.

    UNKNOWN is the catch-all variant for every other `type` tag.
    """

    SESSION_CREATED = "session.created"
    SESSION_UPDATED = "session.updated"
    RESPONSE_DONE = "response.done"
    ERROR = "error"
    UNKNOWN = "unknown"


# =============================================================================
# Output items
# =============================================================================

FUNCTION_CALL_ITEM = "function_call"


@dataclass(frozen=True)
class OutputItem:
    """
    One entry of `response.output`.

    For function calls `name` and `arguments` (a JSON-encoded string) are set.
    """
    item_type: str
    name: str | None = None
    arguments: str = ""
    call_id: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_function_call(self) -> bool:
        return self.item_type == FUNCTION_CALL_ITEM


# A tool invocation is a function_call output item
ToolInvocation = OutputItem


# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class ServerEvent:
    """
    Base server event.

    `raw` keeps the original payload for display and debugging; it is
    excluded from equality so parsed events compare by meaning.
    """
    event_type: ServerEventType
    event_id: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class SessionCreated(ServerEvent):
    """The remote session is live; tools may now be registered."""


@dataclass(frozen=True)
class SessionUpdated(ServerEvent):
    """The service acknowledged a session.update."""


@dataclass(frozen=True)
class ResponseDone(ServerEvent):
    """A model response finished; `output` lists what it produced."""
    output: tuple[OutputItem, ...] = ()

    def function_calls(self, name: str) -> tuple[ToolInvocation, ...]:
        """Return function_call entries addressed to `name`, in order."""
        return tuple(
            item for item in self.output
            if item.is_function_call and item.name == name
        )


@dataclass(frozen=True)
class ServerError(ServerEvent):
    """The service reported an error for this session."""
    message: str = ""
    code: str | None = None


@dataclass(frozen=True)
class UnknownServerEvent(ServerEvent):
    """Any event type the coordinator does not react to."""
    type_name: str = ""


# =============================================================================
# Parsing
# =============================================================================

def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def parse_output_item(data: Any) -> OutputItem:
    if not isinstance(data, Mapping):
        return OutputItem(item_type="")

    arguments = data.get("arguments")
    return OutputItem(
        item_type=_opt_str(data.get("type")) or "",
        name=_opt_str(data.get("name")),
        arguments=arguments if isinstance(arguments, str) else "",
        call_id=_opt_str(data.get("call_id")),
        raw=dict(data),
    )


def parse_server_event(data: Any) -> ServerEvent:
    """
    Convert a decoded JSON object into a typed server event.

    Raises:
        ServerEventError if `data` is not a JSON object.
    """
    if not isinstance(data, Mapping):
        raise ServerEventError(
            f"Server event must be a JSON object, got {type(data).__name__}"
        )

    type_name = _opt_str(data.get("type")) or ""
    event_id = _opt_str(data.get("event_id"))
    raw = dict(data)

    if type_name == ServerEventType.SESSION_CREATED.value:
        return SessionCreated(
            event_type=ServerEventType.SESSION_CREATED,
            event_id=event_id,
            raw=raw,
        )

    if type_name == ServerEventType.SESSION_UPDATED.value:
        return SessionUpdated(
            event_type=ServerEventType.SESSION_UPDATED,
            event_id=event_id,
            raw=raw,
        )

    if type_name == ServerEventType.RESPONSE_DONE.value:
        response = data.get("response")
        output: Any = None
        if isinstance(response, Mapping):
            output = response.get("output")
        items = tuple(parse_output_item(i) for i in output) if isinstance(output, list) else ()
        return ResponseDone(
            event_type=ServerEventType.RESPONSE_DONE,
            event_id=event_id,
            raw=raw,
            output=items,
        )

    if type_name == ServerEventType.ERROR.value:
        error = data.get("error")
        error = error if isinstance(error, Mapping) else {}
        return ServerError(
            event_type=ServerEventType.ERROR,
            event_id=event_id,
            raw=raw,
            message=_opt_str(error.get("message")) or "",
            code=_opt_str(error.get("code")),
        )

    return UnknownServerEvent(
        event_type=ServerEventType.UNKNOWN,
        event_id=event_id,
        raw=raw,
        type_name=type_name,
    )
