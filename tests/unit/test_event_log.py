# pylint: disable=missing-module-docstring,missing-function-docstring

from protocol.server_events import ServerEventType, parse_server_event
from session.event_log import EventLog


def evt(type_name: str):
    return parse_server_event({"type": type_name})


def test_append_keeps_oldest_first():
    log = EventLog()
    log.append(evt("session.created"))
    log.append(evt("response.done"))

    assert len(log) == 2
    assert log[0].event_type is ServerEventType.SESSION_CREATED
    assert log[-1].event_type is ServerEventType.RESPONSE_DONE


def test_from_newest_first_normalises_order():
    log = EventLog.from_newest_first([evt("response.done"), evt("session.created")])

    assert log[0].event_type is ServerEventType.SESSION_CREATED
    assert log[-1].event_type is ServerEventType.RESPONSE_DONE


def test_extend_and_clear():
    log = EventLog([evt("session.created")])
    log.extend([evt("response.done"), evt("error")])

    assert [e.event_type for e in log] == [
        ServerEventType.SESSION_CREATED,
        ServerEventType.RESPONSE_DONE,
        ServerEventType.ERROR,
    ]
    log.clear()
    assert len(log) == 0


def test_slices_are_detached_tuples():
    log = EventLog([evt("session.created")])
    head = log[0:1]
    log.append(evt("response.done"))

    assert isinstance(head, tuple)
    assert len(head) == 1
    assert len(log) == 2
