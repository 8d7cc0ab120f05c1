# pylint: disable=missing-module-docstring,missing-function-docstring
import json
from dataclasses import replace

from coordinator.palette import evaluate_invocation
from coordinator.state import HandlerState
from presentation.tool_panel import (
    CONTROLS_INACTIVE_HINT,
    NO_UPDATE_TEXT,
    PALETTE_INACTIVE_TEXT,
    PALETTE_WAITING_TEXT,
    TuningForm,
    render_tool_panel,
    voice_choices,
)
from protocol.server_events import OutputItem, parse_output_item
from registry.instructions import DEFAULT_INSTRUCTIONS, DEFAULT_VOICE


ACTIVE = HandlerState(session_active=True, generation=1)
OCEAN_ARGS = '{"theme":"ocean","colors":["#001","#002","#003","#004","#005"]}'


def outcome_for(arguments: str):
    item = parse_output_item({
        "type": "function_call",
        "name": "display_color_palette",
        "arguments": arguments,
        "call_id": "call_1",
    })
    return evaluate_invocation(item)


def test_inactive_panel():
    view = render_tool_panel(HandlerState(), TuningForm())

    assert view.controls_enabled is False
    assert view.inactive_hint == CONTROLS_INACTIVE_HINT
    assert view.palette_status == PALETTE_INACTIVE_TEXT
    assert view.update_status == NO_UPDATE_TEXT
    assert view.instructions == DEFAULT_INSTRUCTIONS
    assert view.voice == DEFAULT_VOICE


def test_active_panel_waiting_for_palette():
    view = render_tool_panel(ACTIVE, TuningForm())

    assert view.controls_enabled is True
    assert view.inactive_hint is None
    assert view.palette_status == PALETTE_WAITING_TEXT
    assert view.colors == ()


def test_active_panel_with_palette():
    outcome = outcome_for('{"theme":"ocean","colors":["#001","#002","#003","#004","#005"]}')
    state = replace(ACTIVE, last_tool_invocation=outcome.invocation, last_palette=outcome)

    view = render_tool_panel(state, TuningForm())

    assert view.palette_status is None
    assert view.theme == "ocean"
    assert view.colors == ("#001", "#002", "#003", "#004", "#005")
    assert view.error is None
    assert view.invocation_json is not None
    assert json.loads(view.invocation_json)["call_id"] == "call_1"


def test_malformed_palette_renders_error():
    outcome = outcome_for('{"theme":"x"}')
    state = replace(ACTIVE, last_tool_invocation=outcome.invocation, last_palette=outcome)

    view = render_tool_panel(state, TuningForm())

    assert view.error
    assert view.theme is None
    assert view.colors == ()
    assert view.invocation_json is not None


def test_update_status_shows_timestamp():
    state = replace(ACTIVE, last_update_timestamp="09:30:15")

    assert render_tool_panel(state, TuningForm()).update_status == "Updated at 09:30:15"


def test_to_dict_is_json_ready():
    outcome = outcome_for('{"theme":"ocean","colors":["#1","#2","#3","#4","#5"]}')
    state = replace(ACTIVE, last_palette=outcome)

    data = render_tool_panel(state, TuningForm()).to_dict()

    assert json.loads(json.dumps(data)) == data
    assert data["colors"] == ["#1", "#2", "#3", "#4", "#5"]
    assert data["voice_choices"][0] == {"label": "Marin (friendly)", "value": "marin"}


def test_form_reset_restores_defaults():
    form = TuningForm(instructions="Be terse.", voice="sol")
    form.reset()

    assert form.instructions == DEFAULT_INSTRUCTIONS
    assert form.voice == DEFAULT_VOICE


def test_voice_choices_in_registry_order():
    assert [c["value"] for c in voice_choices()] == ["marin", "alloy", "sol", "verse"]


def test_invocation_without_raw_payload_renders_typed_fields():
    call = OutputItem(
        item_type="function_call",
        name="display_color_palette",
        arguments=OCEAN_ARGS,
        call_id="call_7",
    )
    state = replace(ACTIVE, last_palette=evaluate_invocation(call))

    view = render_tool_panel(state, TuningForm())

    assert view.invocation_json is not None
    shown = json.loads(view.invocation_json)
    assert shown["call_id"] == "call_7"
    assert shown["name"] == "display_color_palette"
    assert shown["arguments"] == OCEAN_ARGS
