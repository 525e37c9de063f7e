"""Stable public API for building tooling on top of buscmd.

`Client` opens the serial port, keeps the address selection that addressable
commands are fanned out to, and collects classified replies in a bounded
history. The encoder, classifier and catalog loader are re-exported for
callers that bring their own transport.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

from buscmd.core.addressing import AddressSelection, format_address, parse_address
from buscmd.core.catalog import Catalog, default_catalog_path, load_catalog, read_catalog
from buscmd.core.classifier import ResponseHistory, classify
from buscmd.core.encoder import encode, format_hex
from buscmd.core.errors import (
    BuscmdError,
    CatalogError,
    CatalogLoadError,
    CatalogMalformedError,
    CommandNotFoundError,
    EncodeError,
    ExtraValueOutOfRangeError,
    InvalidAddressError,
    NoAddressSelectedError,
    SendError,
    SettingsError,
    TransportConnectError,
    TransportError,
    TransportFailureError,
    TransportReceiveError,
    TransportSendError,
)
from buscmd.core.model import (
    CommandDef,
    CommandKind,
    EncodedFrame,
    FireResult,
    Rendered,
    ResponseRecord,
    ResponseType,
)
from buscmd.core.monitor import ResponseMonitor
from buscmd.core.service import BusService
from buscmd.core.settings import SerialSettings, load_settings
from buscmd.transports.base import ByteSink, ByteSource
from buscmd.transports.serial_port import SerialTransport

__all__ = [
    "BuscmdError",
    "CatalogError",
    "CatalogLoadError",
    "CatalogMalformedError",
    "CommandNotFoundError",
    "EncodeError",
    "ExtraValueOutOfRangeError",
    "InvalidAddressError",
    "NoAddressSelectedError",
    "SendError",
    "SettingsError",
    "TransportError",
    "TransportConnectError",
    "TransportFailureError",
    "TransportReceiveError",
    "TransportSendError",
    "AddressSelection",
    "Catalog",
    "CommandDef",
    "CommandKind",
    "EncodedFrame",
    "FireResult",
    "Rendered",
    "ResponseHistory",
    "ResponseRecord",
    "ResponseType",
    "SerialSettings",
    "ByteSink",
    "ByteSource",
    "Client",
    "classify",
    "encode",
    "format_address",
    "format_hex",
    "load_catalog",
    "parse_address",
]


class Client:
    """Public client for driving a serial command bus.

    A `Client` owns one transport (a serial port by default), the command
    catalog, the address selection, and the response history. Replies are read
    on a background thread once `connect` has been called.
    """

    def __init__(
        self,
        *,
        settings: SerialSettings | None = None,
        catalog: Catalog | None = None,
        catalog_path: Path | None = None,
        transport: SerialTransport | None = None,
        on_response: Callable[[ResponseRecord], object] | None = None,
        default_response_type: ResponseType = ResponseType.NONE,
    ) -> None:
        self.settings = settings or load_settings()
        if catalog is None:
            if catalog_path is None and self.settings.catalog:
                catalog_path = Path(self.settings.catalog)
            catalog = read_catalog(catalog_path or default_catalog_path())
        self.transport = transport or SerialTransport(self.settings)
        self._service = BusService(
            catalog,
            self.transport,
            pacing_s=self.settings.pacing_ms / 1000,
            default_response_type=default_response_type,
        )
        self._on_response = on_response
        self._monitor = ResponseMonitor(self.transport, self._handle_chunk)

    @property
    def catalog(self) -> Catalog:
        return self._service.catalog

    @property
    def selection(self) -> AddressSelection:
        return self._service.selection

    @property
    def history(self) -> ResponseHistory:
        return self._service.history

    @property
    def monitor_error(self) -> TransportError | None:
        return self._monitor.error

    def connect(self) -> None:
        self.transport.open()
        self._monitor.start()

    def disconnect(self) -> None:
        self._monitor.stop()
        self.transport.close()
        # Selection is process-lifetime state tied to one connection.
        self._service.selection.deselect_all()

    def __enter__(self) -> Client:
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()

    def list_commands(self) -> list[CommandDef]:
        return self._service.list_commands()

    def send(
        self,
        command: int | str,
        extra_value: int | None = None,
        *,
        addresses: Iterable[int] | None = None,
    ) -> FireResult:
        return self._service.send(command, extra_value, addresses)

    def _handle_chunk(self, data: bytes) -> None:
        record = self._service.handle_chunk(data)
        if record is not None and self._on_response is not None:
            self._on_response(record)
