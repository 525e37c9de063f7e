"""Command catalog loading and validation for YAML/JSON command lists."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from buscmd.core.errors import CatalogLoadError, CatalogMalformedError, CommandNotFoundError
from buscmd.core.model import CommandDef, CommandKind, ResponseType

DEFAULT_MIN = 0
DEFAULT_MAX = 255
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise CatalogMalformedError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


class Catalog:
    """Read-only, ordered table of command definitions."""

    def __init__(self, commands: tuple[CommandDef, ...]) -> None:
        self._commands = commands

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[CommandDef]:
        return iter(self._commands)

    @property
    def commands(self) -> tuple[CommandDef, ...]:
        return self._commands

    def by_index(self, index: int) -> CommandDef:
        if not 0 <= index < len(self._commands):
            raise CommandNotFoundError(
                f"Command index {index} is out of range (catalog has {len(self._commands)} commands)"
            )
        return self._commands[index]

    def by_name(self, name: str) -> CommandDef:
        for command in self._commands:
            if command.name == name:
                return command
        raise CommandNotFoundError(f"Unknown command '{name}'")

    def resolve(self, ref: int | str) -> CommandDef:
        """Resolve an index (int or decimal string) or a command name."""
        if isinstance(ref, int):
            return self.by_index(ref)
        try:
            return self.by_name(ref)
        except CommandNotFoundError:
            if ref.isdigit():
                return self.by_index(int(ref))
            raise


def _load_schema_validator() -> Any:
    schema_text = resources.files("buscmd.schemas").joinpath("catalog.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _bound(record: dict[str, Any], key: str, default: int) -> int:
    value = record.get(key)
    return default if value is None else int(value)


def _build_command(record: dict[str, Any]) -> CommandDef:
    address_byte = record.get("addressByte")
    return CommandDef(
        name=record["name"],
        hex_bytes=record["hexBytes"],
        kind=CommandKind(record["type"]),
        address_byte=int(address_byte) if address_byte is not None else None,
        extra_value=bool(record.get("extraValue", False)),
        min_value=_bound(record, "min", DEFAULT_MIN),
        max_value=_bound(record, "max", DEFAULT_MAX),
        response_type=ResponseType(record.get("responseType", ResponseType.NONE.value)),
    )


def load_catalog(raw: Any) -> Catalog:
    """Build a catalog from an already-parsed list of command records."""
    validator = _load_schema_validator()
    try:
        validator.validate(raw)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise CatalogMalformedError(f"Catalog validation failed{where}: {exc.message}") from exc

    commands = tuple(_build_command(record) for record in raw)
    for command in commands:
        if len(command.hex_bytes) % 2:
            LOGGER.debug("Command '%s' has odd-length hex; trailing nibble is ignored", command.name)
    LOGGER.debug("Loaded %d commands", len(commands))
    return Catalog(commands)


def _read_document(path: Path | Traversable) -> Any:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogLoadError(f"Could not read catalog file {path}: {exc}") from exc

    if path.name.endswith(".json"):
        try:
            return json.loads(content)
        except json.JSONDecodeError as exc:
            raise CatalogMalformedError(f"Invalid JSON in {path}: {exc}") from exc

    try:
        return yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise CatalogMalformedError(f"Invalid YAML in {path}: {exc}") from exc


def read_catalog(path: Path | Traversable) -> Catalog:
    document = _read_document(path)
    try:
        return load_catalog(document)
    except CatalogMalformedError as exc:
        raise CatalogMalformedError(f"{path}: {exc}") from exc


def _config_dir() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "buscmd"


def default_catalog_path() -> Path | Traversable:
    user_catalog = _config_dir() / "commands.yaml"
    if user_catalog.is_file():
        return user_catalog
    return resources.files("buscmd.catalogs").joinpath("commands.yaml")
