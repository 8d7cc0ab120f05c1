# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
import json
from typing import Any

import pytest

import session.gateway as gateway_mod
from registry.instructions import DEFAULT_INSTRUCTIONS
from session.gateway import SessionGateway


OCEAN_CALL = {
    "type": "function_call",
    "name": "display_color_palette",
    "arguments": '{"theme":"ocean","colors":["#001","#002","#003","#004","#005"]}',
    "call_id": "call_1",
}


def msg(**fields: Any) -> str:
    return json.dumps(fields)


def drain(gw: SessionGateway) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    while not gw.outbox.empty():
        out.append(gw.outbox.get_nowait())
    return out


def client_events(out: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [m["event"] for m in out if m["kind"] == "client_event"]


@pytest.fixture
def emitted(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    logs: list[dict[str, Any]] = []

    def fake_log_event(payload: dict[str, Any]) -> None:
        logs.append(payload)

    monkeypatch.setattr(gateway_mod, "log_event", fake_log_event)
    return logs


def test_session_created_registers_tool_then_publishes_panel():
    async def scenario() -> list[dict[str, Any]]:
        gw = SessionGateway()
        await gw.on_json_message(msg(kind="session_active", active=True))
        drain(gw)
        await gw.on_json_message(msg(kind="server_event", event={"type": "session.created"}))
        return drain(gw)

    out = asyncio.run(scenario())

    assert [m["kind"] for m in out] == ["client_event", "panel"]
    assert out[0]["event"]["type"] == "session.update"
    assert out[0]["event"]["session"]["tools"][0]["name"] == "display_color_palette"
    assert out[1]["panel"]["controls_enabled"] is True


def test_newest_first_batch_is_normalised():
    async def scenario() -> tuple[SessionGateway, list[dict[str, Any]]]:
        gw = SessionGateway()
        await gw.set_session_active(True)
        await gw.on_json_message(msg(
            kind="server_events",
            newest_first=True,
            events=[
                {"type": "response.done", "response": {"output": [OCEAN_CALL]}},
                {"type": "session.created"},
            ],
        ))
        return gw, drain(gw)

    gw, out = asyncio.run(scenario())

    assert gw.event_log[0].event_type.value == "session.created"
    assert gw.handler.state.tool_invocations_seen == 1
    panel = [m for m in out if m["kind"] == "panel"][-1]["panel"]
    assert panel["theme"] == "ocean"


def test_session_update_updates_form_and_sends():
    async def scenario() -> tuple[SessionGateway, list[dict[str, Any]]]:
        gw = SessionGateway()
        await gw.set_session_active(True)
        await gw.on_json_message(msg(kind="session_update", instructions="  ", voice="verse"))
        return gw, drain(gw)

    gw, out = asyncio.run(scenario())

    events = client_events(out)
    assert len(events) == 1
    assert events[0]["session"]["instructions"] == DEFAULT_INSTRUCTIONS
    assert events[0]["session"]["audio"]["output"]["voice"] == "verse"
    assert gw.form.voice == "verse"


def test_session_update_while_inactive_sends_nothing():
    async def scenario() -> tuple[SessionGateway, list[dict[str, Any]]]:
        gw = SessionGateway()
        await gw.on_json_message(msg(kind="session_update", instructions="Hi", voice="sol"))
        return gw, drain(gw)

    gw, out = asyncio.run(scenario())

    assert client_events(out) == []
    assert gw.form.voice == "marin"
    assert gw.handler.state.last_update_timestamp is None


def test_session_end_clears_log_and_form():
    async def scenario() -> SessionGateway:
        gw = SessionGateway()
        await gw.set_session_active(True)
        await gw.on_server_event({"type": "session.created"})
        await gw.on_session_update("Be terse.", "sol")
        await gw.set_session_active(False)
        return gw

    gw = asyncio.run(scenario())

    assert len(gw.event_log) == 0
    assert gw.form.instructions == DEFAULT_INSTRUCTIONS
    assert gw.form.voice == "marin"
    assert gw.handler.state.initialized is False


def test_unknown_voice_is_rejected(emitted: list[dict[str, Any]]):
    async def scenario() -> list[dict[str, Any]]:
        gw = SessionGateway()
        await gw.set_session_active(True)
        await gw.on_session_update("Hi", "robot")
        return drain(gw)

    out = asyncio.run(scenario())

    assert client_events(out) == []
    assert any(e["event_type"] == "UNKNOWN_VOICE" for e in emitted)


def test_bad_json_is_logged_and_dropped(emitted: list[dict[str, Any]]):
    async def scenario() -> list[dict[str, Any]]:
        gw = SessionGateway()
        await gw.on_json_message("{not json")
        await gw.on_json_message("[" * 100_000 + "]" * 100_000)
        return drain(gw)

    assert asyncio.run(scenario()) == []
    assert emitted[0]["event_type"] == "JSON_DECODE_ERROR"
    assert emitted[1]["event_type"] == "JSON_DECODE_ERROR"


def test_unknown_kind_is_logged(emitted: list[dict[str, Any]]):
    async def scenario() -> list[dict[str, Any]]:
        gw = SessionGateway()
        await gw.on_json_message(msg(kind="mystery"))
        return drain(gw)

    assert asyncio.run(scenario()) == []
    assert emitted[0]["event_type"] == "UNKNOWN_MESSAGE_KIND"


def test_non_object_server_event_is_rejected(emitted: list[dict[str, Any]]):
    async def scenario() -> SessionGateway:
        gw = SessionGateway()
        await gw.on_json_message(msg(kind="server_event", event="session.created"))
        return gw

    gw = asyncio.run(scenario())

    assert len(gw.event_log) == 0
    assert any(e["event_type"] == "SERVER_EVENT_REJECTED" for e in emitted)


def test_disconnect_tears_down(emitted: list[dict[str, Any]]):
    async def scenario() -> SessionGateway:
        gw = SessionGateway()
        await gw.set_session_active(True)
        await gw.on_server_event({"type": "response.done", "response": {"output": [OCEAN_CALL]}})
        await gw.on_disconnect(reason="client_disconnect")
        await asyncio.sleep(0.6)
        return gw

    gw = asyncio.run(scenario())

    assert client_events(drain(gw)) == []
    assert gw.handler.armed_timer_ids == ()
    assert emitted[-1]["event_type"] == "CLIENT_DISCONNECTED"
