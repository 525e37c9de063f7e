"""Command encoding: hex template, address injection, and trailing parameter byte.

Two lenient behaviors are intentional and kept for catalog compatibility:

* an odd-length hex template drops its trailing nibble instead of failing;
* an ``address_byte`` outside the template leaves the template unmodified.
"""

from __future__ import annotations

import logging

from buscmd.core.addressing import format_address, is_bus_address
from buscmd.core.errors import ExtraValueOutOfRangeError, InvalidAddressError
from buscmd.core.model import CommandDef, EncodedFrame

NO_TARGET_LABEL = "N/A"
LOGGER = logging.getLogger(__name__)


def parse_hex_template(hex_string: str) -> bytes:
    usable = len(hex_string) - len(hex_string) % 2
    return bytes.fromhex(hex_string[:usable])


def format_hex(data: bytes) -> str:
    return " ".join(f"{byte:02X}" for byte in data)


def inject_address(template: bytes, address: int, address_byte: int | None) -> bytes:
    if address_byte is None or not 0 <= address_byte < len(template):
        LOGGER.debug("Address byte %r outside %d-byte template; not injecting", address_byte, len(template))
        return template
    payload = bytearray(template)
    payload[address_byte] |= address & 0x0F
    return bytes(payload)


def check_extra_value(definition: CommandDef, extra_value: int | None) -> int:
    if extra_value is None:
        raise ExtraValueOutOfRangeError(
            f"Command '{definition.name}' requires a value between "
            f"{definition.min_value} and {definition.max_value}"
        )
    if isinstance(extra_value, bool) or not isinstance(extra_value, int):
        raise ExtraValueOutOfRangeError(f"Value {extra_value!r} for '{definition.name}' is not an integer")
    if not definition.min_value <= extra_value <= definition.max_value:
        raise ExtraValueOutOfRangeError(
            f"Value must be between {definition.min_value} and {definition.max_value}, got {extra_value}"
        )
    if not 0 <= extra_value <= 0xFF:
        # A catalog range wider than one byte cannot be sent.
        raise ExtraValueOutOfRangeError(f"Value {extra_value} does not fit in one byte")
    return extra_value


def encode(definition: CommandDef, address: int | None = None, extra_value: int | None = None) -> bytes:
    payload = parse_hex_template(definition.hex_bytes)

    if definition.is_addressable:
        if not is_bus_address(address):
            raise InvalidAddressError(
                f"Command '{definition.name}' needs a bus address in 0x0-0xF, got {address!r}"
            )
        payload = inject_address(payload, address, definition.address_byte)

    if definition.extra_value:
        payload += bytes([check_extra_value(definition, extra_value)])

    return payload


def build_frame(
    definition: CommandDef,
    address: int | None = None,
    extra_value: int | None = None,
    *,
    sequence: int = 0,
) -> EncodedFrame:
    data = encode(definition, address, extra_value)
    if definition.is_addressable and address is not None:
        label = format_address(address)
    else:
        label = NO_TARGET_LABEL
        address = None
    return EncodedFrame(
        command=definition.name,
        data=data,
        target_label=label,
        address=address,
        sequence=sequence,
    )
