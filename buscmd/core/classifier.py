"""Response classification and bounded response history."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator

from buscmd.core.encoder import format_hex
from buscmd.core.model import Rendered, ResponseRecord, ResponseType

HISTORY_LIMIT = 50


def classify(data: bytes, response_type: ResponseType) -> Rendered | None:
    """Render an inbound chunk for display; ``None`` means nothing to record."""
    if response_type is ResponseType.BINARY:
        return Rendered(response_type=response_type, text=format_hex(data))
    if response_type is ResponseType.TEXT:
        return Rendered(response_type=response_type, text=bytes(data).decode("utf-8", errors="replace"))
    return None


class ResponseHistory:
    """Most recent responses, oldest first; the oldest is evicted past ``limit``."""

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        self._records: deque[ResponseRecord] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ResponseRecord]:
        return iter(tuple(self._records))

    @property
    def limit(self) -> int:
        return self._records.maxlen or 0

    def add(self, record: ResponseRecord) -> None:
        self._records.append(record)

    def latest(self) -> ResponseRecord | None:
        return self._records[-1] if self._records else None

    def clear(self) -> None:
        self._records.clear()
