"""Loading and saving of the user's configuration file."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "skaterxl_cli_config.json"
_KEY = "skater_xl_maps_dir"
_ESCAPES = str.maketrans({
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
})


class ConfigError(Exception):
    """Raised when the configuration cannot be located, read or written."""


@dataclass
class Config:
    """Application settings."""

    skater_xl_maps_dir: str = ""


def config_path() -> Path:
    """Return the location of the configuration file in the user's home directory."""
    try:
        home = Path.home()
    except (RuntimeError, KeyError) as exc:
        raise ConfigError(f"failed to get user home directory: {exc}") from exc
    return home / ".config" / "skaterxl-map-manager" / CONFIG_FILE_NAME


def _resolve(path: str | os.PathLike[str] | None) -> Path:
    return config_path() if path is None else Path(path)


def load_config(path: str | os.PathLike[str] | None = None) -> Config:
    """Read the configuration; a missing file gives an empty configuration."""
    path = _resolve(path)
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return Config()
    except OSError as exc:
        raise ConfigError(f"failed to read config file: {exc}") from exc

    try:
        data = json.loads(raw)
        if data is None:
            return Config()
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        maps_dir = data.get(_KEY)
        if maps_dir is None:
            maps_dir = ""
        elif not isinstance(maps_dir, str):
            raise ValueError(f"field {_KEY!r} should be a string")
    except ValueError as exc:
        raise ConfigError(f"failed to unmarshal config: {exc}") from exc
    return Config(skater_xl_maps_dir=maps_dir)


def save_config(config: Config, path: str | os.PathLike[str] | None = None) -> Path:
    """Write the configuration, creating its directory if needed; return the file's path."""
    path = _resolve(path)
    try:
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"failed to create config directory: {exc}") from exc

    text = json.dumps({_KEY: config.skater_xl_maps_dir}, indent=2, ensure_ascii=False)
    text = text.translate(_ESCAPES)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
    except OSError as exc:
        raise ConfigError(f"failed to write config file: {exc}") from exc
    return path