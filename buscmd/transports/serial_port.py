"""Serial port transport implementation using pyserial."""

from __future__ import annotations

import logging
import sys

import serial
from serial.tools import list_ports

from buscmd.core.errors import (
    TransportConnectError,
    TransportReceiveError,
    TransportSendError,
)
from buscmd.core.settings import SerialSettings

LOGGER = logging.getLogger(__name__)

if sys.platform == "win32":
    PORT_ERRORS: tuple[type[BaseException], ...] = (serial.SerialException, OSError)
else:
    import termios

    # pyserial lets termios.error out of flush() on POSIX.
    PORT_ERRORS = (serial.SerialException, OSError, termios.error)


def list_serial_ports() -> list[tuple[str, str]]:
    return [(p.device, p.description or "") for p in sorted(list_ports.comports(), key=lambda p: p.device)]


class SerialTransport:
    """Byte sink and byte source over one serial line."""

    def __init__(self, settings: SerialSettings) -> None:
        self.settings = settings
        self._serial: serial.Serial | None = None

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self) -> None:
        if self.is_open:
            return
        if not self.settings.port:
            raise TransportConnectError("No serial port configured. Pass --port or set BUSCMD_PORT.")
        try:
            self._serial = serial.Serial(
                port=self.settings.port,
                baudrate=self.settings.baudrate,
                bytesize=self.settings.bytesize,
                parity=self.settings.parity,
                stopbits=self.settings.stopbits,
                timeout=self.settings.timeout_s,
                write_timeout=self.settings.write_timeout_s,
            )
        except (serial.SerialException, ValueError) as exc:
            raise TransportConnectError(f"Could not open serial port {self.settings.port}: {exc}") from exc
        LOGGER.info("Serial connected: %s @ %d", self.settings.port, self.settings.baudrate)

    def close(self) -> None:
        if self._serial is None:
            return
        try:
            self._serial.close()
        finally:
            self._serial = None
            LOGGER.info("Serial disconnected: %s", self.settings.port)

    def __enter__(self) -> SerialTransport:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _require_open(self, error_cls: type[Exception]) -> serial.Serial:
        if self._serial is None or not self._serial.is_open:
            raise error_cls("Not connected to serial port")
        return self._serial

    def write(self, data: bytes) -> None:
        port = self._require_open(TransportSendError)
        try:
            written = port.write(data)
            port.flush()
        except PORT_ERRORS as exc:
            raise TransportSendError(f"Serial write failed: {exc}") from exc
        if written is not None and written != len(data):
            raise TransportSendError(f"Serial write was short: {written} of {len(data)} bytes")

    def read_chunk(self) -> bytes:
        port = self._require_open(TransportReceiveError)
        try:
            return port.read(port.in_waiting or 1)
        except PORT_ERRORS as exc:
            raise TransportReceiveError(f"Serial read failed: {exc}") from exc
