from __future__ import annotations

import pytest
import serial

from buscmd.core.errors import TransportConnectError, TransportReceiveError, TransportSendError
from buscmd.core.settings import SerialSettings
from buscmd.transports import serial_port
from buscmd.transports.serial_port import SerialTransport


class FakeSerial:
    instances: list[FakeSerial] = []

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.is_open = True
        self.written: list[bytes] = []
        self.inbound = b"OK\n"
        self.fail_write = False
        FakeSerial.instances.append(self)

    @property
    def in_waiting(self) -> int:
        return len(self.inbound)

    def write(self, data: bytes) -> int:
        if self.fail_write:
            raise serial.SerialTimeoutException("Write timeout")
        self.written.append(data)
        return len(data)

    def flush(self) -> None:
        pass

    def read(self, size: int) -> bytes:
        chunk, self.inbound = self.inbound[:size], self.inbound[size:]
        return chunk

    def close(self) -> None:
        self.is_open = False


@pytest.fixture
def fake_serial(monkeypatch: pytest.MonkeyPatch) -> type[FakeSerial]:
    FakeSerial.instances = []
    monkeypatch.setattr(serial_port.serial, "Serial", FakeSerial)
    return FakeSerial


def test_open_uses_line_settings(fake_serial: type[FakeSerial]) -> None:
    with SerialTransport(SerialSettings(port="/dev/ttyUSB0")) as transport:
        assert transport.is_open
    kwargs = fake_serial.instances[0].kwargs
    assert kwargs["port"] == "/dev/ttyUSB0"
    assert kwargs["baudrate"] == 9600
    assert kwargs["parity"] == "E"
    assert kwargs["bytesize"] == 8
    assert kwargs["stopbits"] == 1
    assert not transport.is_open


def test_write_and_read_chunk(fake_serial: type[FakeSerial]) -> None:
    transport = SerialTransport(SerialSettings(port="/dev/ttyUSB0"))
    transport.open()
    transport.write(b"\x8b")
    assert fake_serial.instances[0].written == [b"\x8b"]
    assert transport.read_chunk() == b"OK\n"
    transport.close()


def test_write_failure_is_transport_send_error(fake_serial: type[FakeSerial]) -> None:
    transport = SerialTransport(SerialSettings(port="/dev/ttyUSB0"))
    transport.open()
    fake_serial.instances[0].fail_write = True
    with pytest.raises(TransportSendError):
        transport.write(b"\x80")


def test_missing_port_raises_connect_error() -> None:
    with pytest.raises(TransportConnectError):
        SerialTransport(SerialSettings(port=None)).open()


def test_open_failure_raises_connect_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(**kwargs):
        raise serial.SerialException("could not open port")

    monkeypatch.setattr(serial_port.serial, "Serial", refuse)
    with pytest.raises(TransportConnectError):
        SerialTransport(SerialSettings(port="/dev/ttyUSB9")).open()


def test_io_without_open_port() -> None:
    transport = SerialTransport(SerialSettings(port="/dev/ttyUSB0"))
    with pytest.raises(TransportSendError):
        transport.write(b"\x00")
    with pytest.raises(TransportReceiveError):
        transport.read_chunk()


def test_unplugged_device_read_is_transport_receive_error(
    fake_serial: type[FakeSerial], monkeypatch: pytest.MonkeyPatch
) -> None:
    class UnpluggedSerial(FakeSerial):
        @property
        def in_waiting(self) -> int:
            raise OSError(5, "Input/output error")

    monkeypatch.setattr(serial_port.serial, "Serial", UnpluggedSerial)
    transport = SerialTransport(SerialSettings(port="/dev/ttyUSB0"))
    transport.open()
    with pytest.raises(TransportReceiveError) as exc:
        transport.read_chunk()
    assert isinstance(exc.value.__cause__, OSError)


def test_flush_failure_is_transport_send_error(
    fake_serial: type[FakeSerial], monkeypatch: pytest.MonkeyPatch
) -> None:
    class BrokenFlushSerial(FakeSerial):
        def flush(self) -> None:
            raise OSError(5, "Input/output error")

    monkeypatch.setattr(serial_port.serial, "Serial", BrokenFlushSerial)
    transport = SerialTransport(SerialSettings(port="/dev/ttyUSB0"))
    transport.open()
    with pytest.raises(TransportSendError):
        transport.write(b"\x80")


@pytest.mark.skipif(serial_port.sys.platform == "win32", reason="termios is POSIX only")
def test_termios_error_is_transport_send_error(
    fake_serial: type[FakeSerial], monkeypatch: pytest.MonkeyPatch
) -> None:
    import termios

    class TermiosFlushSerial(FakeSerial):
        def flush(self) -> None:
            raise termios.error(5, "Input/output error")

    monkeypatch.setattr(serial_port.serial, "Serial", TermiosFlushSerial)
    transport = SerialTransport(SerialSettings(port="/dev/ttyUSB0"))
    transport.open()
    with pytest.raises(TransportSendError):
        transport.write(b"\x80")
