"""Core data models used across catalog, scheduler, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class CommandKind(str, Enum):
    PLAIN = "plain"
    ADDRESSABLE = "addressable"


class ResponseType(str, Enum):
    BINARY = "binary"
    TEXT = "text"
    NONE = "none"


@dataclass(frozen=True)
class CommandDef:
    name: str
    hex_bytes: str
    kind: CommandKind = CommandKind.PLAIN
    address_byte: int | None = None
    extra_value: bool = False
    min_value: int = 0
    max_value: int = 255
    response_type: ResponseType = ResponseType.NONE

    @property
    def is_addressable(self) -> bool:
        return self.kind is CommandKind.ADDRESSABLE


@dataclass(frozen=True)
class EncodedFrame:
    command: str
    data: bytes
    target_label: str
    address: int | None = None
    sequence: int = 0


@dataclass(frozen=True)
class FireResult:
    command: str
    frames: tuple[EncodedFrame, ...]


@dataclass(frozen=True)
class Rendered:
    response_type: ResponseType
    text: str


@dataclass(frozen=True)
class ResponseRecord:
    rendered: Rendered
    raw: bytes
    received_at: datetime
    command: str | None = None
    after_sequence: int | None = None
