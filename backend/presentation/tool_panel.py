"""
Tool panel view model.

Renders handler state into plain data for whatever UI sits on the other
side of the gateway. Read-only with respect to HandlerState.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any

from coordinator.state import HandlerState
from protocol.server_events import ToolInvocation
from registry.instructions import DEFAULT_INSTRUCTIONS, DEFAULT_VOICE, VOICE_OPTIONS


PALETTE_INACTIVE_TEXT = "Start the session to use this tool..."
PALETTE_WAITING_TEXT = "Ask for advice on a color palette..."
CONTROLS_INACTIVE_HINT = "Start a session to enable controls"
NO_UPDATE_TEXT = "No customizations sent yet"


@dataclass
class TuningForm:
    """
    Draft values of the session tuning form.

    Mutable: edited by the user, reset to defaults when the session ends.
    """
    instructions: str = DEFAULT_INSTRUCTIONS
    voice: str = DEFAULT_VOICE

    def reset(self) -> None:
        self.instructions = DEFAULT_INSTRUCTIONS
        self.voice = DEFAULT_VOICE


@dataclass(frozen=True)
class ToolPanelView:
    """Everything the panel displays, derived from state + form."""
    controls_enabled: bool
    instructions: str
    voice: str
    voice_choices: tuple[dict[str, str], ...]
    update_status: str
    inactive_hint: str | None
    palette_status: str | None
    theme: str | None = None
    colors: tuple[str, ...] = field(default_factory=tuple)
    invocation_json: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "controls_enabled": self.controls_enabled,
            "instructions": self.instructions,
            "voice": self.voice,
            "voice_choices": list(self.voice_choices),
            "update_status": self.update_status,
            "inactive_hint": self.inactive_hint,
            "palette_status": self.palette_status,
            "theme": self.theme,
            "colors": list(self.colors),
            "invocation_json": self.invocation_json,
            "error": self.error,
        }


def voice_choices() -> tuple[dict[str, str], ...]:
    return tuple(
        {"label": option.label, "value": option.value}
        for option in VOICE_OPTIONS
    )


def _invocation_payload(invocation: ToolInvocation) -> dict[str, Any]:
    if invocation.raw:
        return dict(invocation.raw)
    return {
        "type": invocation.item_type,
        "name": invocation.name,
        "call_id": invocation.call_id,
        "arguments": invocation.arguments,
    }


def render_tool_panel(state: HandlerState, form: TuningForm) -> ToolPanelView:
    active = state.session_active

    if state.last_update_timestamp is not None:
        update_status = f"Updated at {state.last_update_timestamp}"
    else:
        update_status = NO_UPDATE_TEXT

    view = ToolPanelView(
        controls_enabled=active,
        instructions=form.instructions,
        voice=form.voice,
        voice_choices=voice_choices(),
        update_status=update_status,
        inactive_hint=None if active else CONTROLS_INACTIVE_HINT,
        palette_status=PALETTE_INACTIVE_TEXT if not active else None,
    )

    if not active:
        return view

    outcome = state.last_palette
    if outcome is None:
        return replace(view, palette_status=PALETTE_WAITING_TEXT)

    invocation_json = json.dumps(_invocation_payload(outcome.invocation), indent=2)

    if outcome.palette is None:
        return replace(view, invocation_json=invocation_json, error=outcome.error)

    return replace(
        view,
        theme=outcome.palette.theme,
        colors=outcome.palette.colors,
        invocation_json=invocation_json,
    )
