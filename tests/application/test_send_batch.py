from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Callable

import pytest

from lib_log_seq.application.ports.transport import TransportPort
from lib_log_seq.application.use_cases.send_batch import create_send_batch, encode_batch
from lib_log_seq.domain.events import ExtraParameter, LogEvent

EventFactory = Callable[..., LogEvent]


class _RecordingTransport:
    def __init__(self, error: Exception | None = None) -> None:
        self.payloads: list[bytes] = []
        self.error = error
        self.closed = False

    def send(self, payload: bytes) -> None:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error

    def close(self) -> None:
        self.closed = True


def test_recording_transport_satisfies_port() -> None:
    assert isinstance(_RecordingTransport(), TransportPort)


def test_encode_batch_wraps_events_in_envelope(event_factory: EventFactory) -> None:
    payload = encode_batch([event_factory("a"), event_factory("b")], offset=timedelta(0))

    assert payload.startswith('{"events":[{"Timestamp":')
    assert payload.endswith("}}]}")
    document = json.loads(payload)
    assert [item["MessageTemplate"] for item in document["events"]] == ["a", "b"]


def test_encode_batch_of_nothing_is_empty_envelope() -> None:
    assert encode_batch([]) == '{"events":[]}'


def test_send_batch_posts_one_utf8_payload(event_factory: EventFactory) -> None:
    transport = _RecordingTransport()
    send_batch = create_send_batch(transport=transport)

    count = send_batch([event_factory("grüße"), event_factory("two")])

    assert count == 2
    assert len(transport.payloads) == 1
    document = json.loads(transport.payloads[0].decode("utf-8"))
    assert document["events"][0]["MessageTemplate"] == "grüße"


def test_send_batch_skips_empty_batches() -> None:
    transport = _RecordingTransport()
    send_batch = create_send_batch(transport=transport)

    assert send_batch([]) == 0
    assert transport.payloads == []


def test_send_batch_applies_parameters_in_order(event_factory: EventFactory) -> None:
    transport = _RecordingTransport()
    parameters = [
        ExtraParameter("First", lambda _event: "1st"),
        ExtraParameter("Second", lambda _event: "2nd"),
    ]
    send_batch = create_send_batch(transport=transport, parameters=parameters)
    parameters.clear()

    send_batch([event_factory()])

    properties = json.loads(transport.payloads[0])["events"][0]["Properties"]
    assert list(properties) == ["First", "Second", "Logger"]


def test_send_batch_propagates_transport_errors(event_factory: EventFactory) -> None:
    transport = _RecordingTransport(error=ConnectionError("down"))
    send_batch = create_send_batch(transport=transport)

    with pytest.raises(ConnectionError):
        send_batch([event_factory()])


def test_send_batch_logs_delivery_at_debug(event_factory: EventFactory, caplog: pytest.LogCaptureFixture) -> None:
    send_batch = create_send_batch(transport=_RecordingTransport())

    with caplog.at_level(logging.DEBUG, logger="lib_log_seq.application.use_cases.send_batch"):
        send_batch([event_factory()])

    assert any(record.getMessage().startswith("Sent 1 events") for record in caplog.records)
