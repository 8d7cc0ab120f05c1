"""
Builders for client events sent to the realtime service.

Every builder returns a freshly constructed dict, ready for JSON encoding.
"""

from __future__ import annotations

from typing import Any

from registry.instructions import FOLLOWUP_INSTRUCTIONS
from registry.tools import PALETTE_TOOL, TOOL_CHOICE


SESSION_UPDATE = "session.update"
RESPONSE_CREATE = "response.create"


def tool_registration_event() -> dict[str, Any]:
    """session.update enabling the palette tool with automatic tool choice."""
    return {
        "type": SESSION_UPDATE,
        "session": {
            "type": "realtime",
            "tools": [PALETTE_TOOL.to_payload()],
            "tool_choice": TOOL_CHOICE,
        },
    }


def session_update_event(instructions: str, voice: str) -> dict[str, Any]:
    """session.update carrying user-tuned instructions and output voice."""
    return {
        "type": SESSION_UPDATE,
        "session": {
            "instructions": instructions,
            "audio": {
                "output": {"voice": voice},
            },
        },
    }


def followup_request_event() -> dict[str, Any]:
    """response.create asking the model to solicit palette feedback."""
    return {
        "type": RESPONSE_CREATE,
        "response": {
            "instructions": FOLLOWUP_INSTRUCTIONS,
        },
    }
