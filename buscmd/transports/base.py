"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol


class ByteSink(Protocol):
    def write(self, data: bytes) -> None:
        """Transmit all of ``data`` or raise ``TransportError``."""


class ByteSource(Protocol):
    def read_chunk(self) -> bytes:
        """Return the next inbound chunk, or ``b""`` when the line was idle."""
