"""Service layer used by CLI and future UI frontends."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from datetime import datetime

from buscmd.core.addressing import AddressSelection
from buscmd.core.catalog import Catalog
from buscmd.core.classifier import ResponseHistory, classify
from buscmd.core.model import CommandDef, FireResult, ResponseRecord, ResponseType
from buscmd.core.scheduler import DEFAULT_PACING_S, TransmissionScheduler
from buscmd.transports.base import ByteSink

LOGGER = logging.getLogger(__name__)


class BusService:
    """Explicitly owned bus state: catalog, address selection, scheduler, history.

    Inbound chunks carry no link to the frame that caused them. ``handle_chunk``
    classifies each chunk with the response type of the most recently fired
    command that declares one, and records the last written frame's sequence
    number as an ordering hint.
    """

    def __init__(
        self,
        catalog: Catalog,
        sink: ByteSink,
        *,
        pacing_s: float = DEFAULT_PACING_S,
        sleep: Callable[[float], None] = time.sleep,
        default_response_type: ResponseType = ResponseType.NONE,
    ) -> None:
        self.catalog = catalog
        self.selection = AddressSelection()
        self.scheduler = TransmissionScheduler(sink, pacing_s=pacing_s, sleep=sleep)
        self.history = ResponseHistory()
        self.default_response_type = default_response_type
        # Written by the sending thread, read by the reader thread.
        self._expecting_lock = threading.Lock()
        self._expecting: CommandDef | None = None

    def list_commands(self) -> list[CommandDef]:
        return list(self.catalog)

    def send(
        self,
        ref: int | str,
        extra_value: int | None = None,
        addresses: Iterable[int] | None = None,
    ) -> FireResult:
        command = self.catalog.resolve(ref)
        targets = self.selection.snapshot_sorted() if addresses is None else tuple(addresses)
        result = self.scheduler.fire(command, targets, extra_value)
        if command.response_type is not ResponseType.NONE:
            with self._expecting_lock:
                self._expecting = command
        return result

    def handle_chunk(self, data: bytes) -> ResponseRecord | None:
        with self._expecting_lock:
            expecting = self._expecting
        if expecting is not None:
            command_name: str | None = expecting.name
            response_type = expecting.response_type
        else:
            command_name = None
            response_type = self.default_response_type

        rendered = classify(data, response_type)
        if rendered is None:
            LOGGER.debug("Dropping %d unclassified byte(s)", len(data))
            return None

        record = ResponseRecord(
            rendered=rendered,
            raw=bytes(data),
            received_at=datetime.now(),
            command=command_name,
            after_sequence=self.scheduler.last_sequence,
        )
        self.history.add(record)
        return record
