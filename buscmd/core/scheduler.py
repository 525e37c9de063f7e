"""Sequential, paced transmission of encoded frames onto the shared bus."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import replace

from buscmd.core.encoder import build_frame, format_hex
from buscmd.core.errors import NoAddressSelectedError, TransportError, TransportFailureError
from buscmd.core.model import CommandDef, EncodedFrame, FireResult
from buscmd.transports.base import ByteSink

DEFAULT_PACING_S = 0.1
LOGGER = logging.getLogger(__name__)


class TransmissionScheduler:
    """Owns write access to the bus for the duration of each ``fire`` call.

    Frames for every target are encoded before the first write, so a bad
    parameter or address never leaves a partial sequence on the bus. Between
    consecutive addressed writes the scheduler sleeps for ``pacing_s`` to let
    the half-duplex line settle.
    """

    def __init__(
        self,
        sink: ByteSink,
        *,
        pacing_s: float = DEFAULT_PACING_S,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.sink = sink
        self.pacing_s = pacing_s
        self._sleep = sleep
        self._lock = threading.Lock()
        self._sequence = itertools.count(1)
        self._last_sequence: int | None = None

    @property
    def last_sequence(self) -> int | None:
        return self._last_sequence

    def _plan(
        self,
        definition: CommandDef,
        addresses: Iterable[int],
        extra_value: int | None,
    ) -> list[EncodedFrame]:
        if not definition.is_addressable:
            targets = tuple(addresses)
            if targets:
                LOGGER.debug("Ignoring addresses %s for plain command '%s'", targets, definition.name)
            return [build_frame(definition, None, extra_value)]

        targets = sorted(set(addresses))
        if not targets:
            raise NoAddressSelectedError(
                f"Select at least one address for addressable command '{definition.name}'"
            )
        return [build_frame(definition, address, extra_value) for address in targets]

    def fire(
        self,
        definition: CommandDef,
        addresses: Iterable[int] = (),
        extra_value: int | None = None,
    ) -> FireResult:
        with self._lock:
            planned = self._plan(definition, addresses, extra_value)
            sent: list[EncodedFrame] = []
            for index, frame in enumerate(planned):
                if index:
                    self._sleep(self.pacing_s)
                frame = replace(frame, sequence=next(self._sequence))
                try:
                    self.sink.write(frame.data)
                except (TransportError, OSError) as exc:
                    LOGGER.warning(
                        "Write of '%s' to %s failed after %d frame(s): %s",
                        definition.name,
                        frame.target_label,
                        len(sent),
                        exc,
                    )
                    raise TransportFailureError(
                        f"Failed to write to serial port: {exc}",
                        cause=exc,
                        sent=tuple(sent),
                    ) from exc
                LOGGER.debug("Sent '%s' to %s: %s", frame.command, frame.target_label, format_hex(frame.data))
                sent.append(frame)
                self._last_sequence = frame.sequence
            return FireResult(command=definition.name, frames=tuple(sent))
