from __future__ import annotations

import threading

import pytest

from buscmd.core.catalog import load_catalog
from buscmd.core.errors import CommandNotFoundError, NoAddressSelectedError
from buscmd.core.model import ResponseType
from buscmd.core.service import BusService


class FakeSink:
    def __init__(self) -> None:
        self.writes: list[bytes] = []

    def write(self, data: bytes) -> None:
        self.writes.append(data)


CATALOG = [
    {"name": "Ping", "hexBytes": "80", "type": "addressable", "addressByte": 0, "responseType": "binary"},
    {"name": "Identify", "hexBytes": "90", "type": "addressable", "addressByte": 0, "responseType": "text"},
    {"name": "Reset All", "hexBytes": "FF00", "type": "plain"},
    {"name": "Level", "hexBytes": "20", "type": "plain", "extraValue": True, "min": 0, "max": 10},
]


def _service(**kwargs) -> tuple[BusService, FakeSink, list[float]]:
    sink = FakeSink()
    sleeps: list[float] = []
    service = BusService(load_catalog(CATALOG), sink, sleep=sleeps.append, **kwargs)
    return service, sink, sleeps


def test_send_uses_selection_snapshot() -> None:
    service, sink, sleeps = _service()
    for address in (0xC, 0x1, 0x7):
        service.selection.select(address)

    result = service.send("Ping")
    assert sink.writes == [bytes([0x81]), bytes([0x87]), bytes([0x8C])]
    assert len(sleeps) == 2
    assert result.command == "Ping"


def test_send_by_index_with_explicit_addresses() -> None:
    service, sink, _ = _service()
    service.selection.select_all()
    service.send(0, addresses=[4])
    assert sink.writes == [bytes([0x84])]


def test_send_without_selection_fails() -> None:
    service, sink, _ = _service()
    with pytest.raises(NoAddressSelectedError):
        service.send("Identify")
    assert sink.writes == []


def test_send_plain_with_value() -> None:
    service, sink, _ = _service()
    service.send("Level", 7)
    assert sink.writes == [bytes([0x20, 0x07])]


def test_unknown_command() -> None:
    service, _, _ = _service()
    with pytest.raises(CommandNotFoundError):
        service.send("Pong")


def test_handle_chunk_uses_last_command_response_type() -> None:
    service, _, _ = _service()
    service.selection.select(2)

    service.send("Identify")
    record = service.handle_chunk(b"v1.2")
    assert record is not None
    assert record.rendered.response_type is ResponseType.TEXT
    assert record.rendered.text == "v1.2"
    assert record.command == "Identify"
    assert record.after_sequence == 1

    # Commands without a declared response type keep the previous expectation.
    service.send("Reset All")
    record = service.handle_chunk(b"\x01\x02")
    assert record is not None
    assert record.command == "Identify"
    assert record.after_sequence == 2

    service.send("Ping")
    record = service.handle_chunk(b"\x8a\x00")
    assert record is not None
    assert record.rendered.text == "8A 00"
    assert len(service.history) == 3


def test_handle_chunk_before_any_send_uses_default() -> None:
    service, _, _ = _service()
    assert service.handle_chunk(b"\x00") is None
    assert len(service.history) == 0

    binary_service, _, _ = _service(default_response_type=ResponseType.BINARY)
    record = binary_service.handle_chunk(b"\x0f")
    assert record is not None
    assert record.command is None
    assert record.after_sequence is None
    assert record.rendered.text == "0F"


def test_history_is_capped() -> None:
    service, _, _ = _service(default_response_type=ResponseType.BINARY)
    for index in range(60):
        service.handle_chunk(bytes([index]))
    records = list(service.history)
    assert len(records) == 50
    assert records[0].raw == bytes([10])


def test_reader_thread_sees_expectation_from_sender() -> None:
    service, _, _ = _service()
    service.selection.select(5)
    service.send("Identify")

    records = []
    reader = threading.Thread(target=lambda: records.append(service.handle_chunk(b"ready")))
    reader.start()
    reader.join(2.0)

    assert records[0] is not None
    assert records[0].command == "Identify"
    assert records[0].rendered.text == "ready"
