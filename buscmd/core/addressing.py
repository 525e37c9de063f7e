"""Bus address selection."""

from __future__ import annotations

import logging

from buscmd.core.errors import InvalidAddressError

BUS_ADDRESSES = tuple(range(16))
LOGGER = logging.getLogger(__name__)


def is_bus_address(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value in BUS_ADDRESSES


def format_address(address: int) -> str:
    return f"0x{address:X}"


def parse_address(text: str) -> int:
    """Parse "0xB", "b" or "11" into a bus address."""
    raw = text.strip().lower()
    try:
        if raw.startswith("0x"):
            value = int(raw, 16)
        elif raw.isdigit():
            value = int(raw)
        else:
            value = int(raw, 16)
    except ValueError as exc:
        raise InvalidAddressError(f"'{text}' is not a bus address") from exc
    if not is_bus_address(value):
        raise InvalidAddressError(f"Address {text} is outside 0x0-0xF")
    return value


class AddressSelection:
    """Set of selected bus addresses, read as an ascending snapshot at send time."""

    def __init__(self, addresses: tuple[int, ...] = ()) -> None:
        self._selected: set[int] = set()
        for address in addresses:
            self.select(address)

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, address: object) -> bool:
        return address in self._selected

    def select(self, address: int) -> None:
        if not is_bus_address(address):
            LOGGER.debug("Ignoring select of invalid bus address %r", address)
            return
        self._selected.add(address)

    def deselect(self, address: int) -> None:
        if not is_bus_address(address):
            LOGGER.debug("Ignoring deselect of invalid bus address %r", address)
            return
        self._selected.discard(address)

    def select_all(self) -> None:
        self._selected.update(BUS_ADDRESSES)

    def deselect_all(self) -> None:
        self._selected.clear()

    def snapshot_sorted(self) -> tuple[int, ...]:
        return tuple(sorted(self._selected))
