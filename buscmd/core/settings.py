"""Serial line settings loaded from the user config directory."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from buscmd.core.errors import SettingsError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SerialSettings:
    port: str | None = None
    baudrate: int = 9600
    bytesize: int = 8
    parity: str = "E"
    stopbits: float = 1
    timeout_s: float = 0.1
    write_timeout_s: float | None = None
    pacing_ms: int = 100
    catalog: str | None = None


def _load_schema_validator() -> Any:
    schema_text = resources.files("buscmd.schemas").joinpath("settings.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def default_settings_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "buscmd/config.yaml"


def _read_settings_file(path: Path) -> dict[str, Any]:
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SettingsError(f"Could not read settings file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    try:
        _load_schema_validator().validate(loaded)
    except ValidationError as exc:
        path_desc = ".".join(str(p) for p in exc.path)
        where = f" ({path_desc})" if path_desc else ""
        raise SettingsError(f"Invalid settings in {path}{where}: {exc.message}") from exc
    return loaded


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if port := os.environ.get("BUSCMD_PORT"):
        overrides["port"] = port
    if baudrate := os.environ.get("BUSCMD_BAUDRATE"):
        try:
            overrides["baudrate"] = int(baudrate)
        except ValueError as exc:
            raise SettingsError(f"BUSCMD_BAUDRATE must be an integer, got '{baudrate}'") from exc
    return overrides


def load_settings(path: Path | None = None) -> SerialSettings:
    """Defaults, then the YAML settings file, then environment overrides."""
    settings = SerialSettings()
    settings_path = path or default_settings_path()
    if settings_path.is_file():
        LOGGER.debug("Loading settings from %s", settings_path)
        settings = replace(settings, **_read_settings_file(settings_path))
    elif path is not None:
        raise SettingsError(f"Settings file {path} does not exist")
    return replace(settings, **_env_overrides())
