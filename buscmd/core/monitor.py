"""Background reader that forwards inbound chunks from a byte source."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from buscmd.core.errors import TransportError, TransportReceiveError
from buscmd.transports.base import ByteSource

LOGGER = logging.getLogger(__name__)


class ResponseMonitor:
    """Owns a ``ByteSource`` on a daemon thread until stopped or the source fails."""

    def __init__(self, source: ByteSource, on_chunk: Callable[[bytes], object]) -> None:
        self.source = source
        self.on_chunk = on_chunk
        self.error: TransportError | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self.error = None
        self._thread = threading.Thread(target=self._rx_loop, name="buscmd-rx", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 1.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _rx_loop(self) -> None:
        while not self._stop.is_set():
            try:
                chunk = self.source.read_chunk()
                if chunk:
                    self.on_chunk(chunk)
            except TransportError as exc:
                LOGGER.warning("Reading stopped: %s", exc)
                self.error = exc
                return
            except Exception as exc:
                # Anything else would end the thread with no error recorded.
                LOGGER.exception("Reading stopped unexpectedly")
                error = TransportReceiveError(f"Reading stopped: {exc}")
                error.__cause__ = exc
                self.error = error
                return
