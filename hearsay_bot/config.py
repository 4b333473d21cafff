"""Bot configuration loaded from a YAML file."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)


class ConfigError(Exception):
    """The configuration file could not be read or understood."""


@dataclass
class Config:
    """Runtime settings; the defaults apply wherever the file is silent."""

    command_prefix: str = "+"
    bot_mode: str = "+B"
    max_message_pool: int = 30
    deletion_days: int = 5


def _setting(data: dict[str, Any], section: str, key: str, kind: type, empty: Any) -> Any:
    block = data.get(section) or {}
    if not isinstance(block, dict):
        raise ConfigError(f"section {section!r} must be a mapping")
    value = block.get(key)
    if value is None:
        return empty
    if isinstance(value, bool) or not isinstance(value, kind):
        raise ConfigError(f"{key!r} must be a {kind.__name__}, not {value!r}")
    return value


def read_config(path: str | Path, verbose: bool = False) -> Config:
    """Read *path* and return its settings on top of the defaults.

    Empty strings and non-positive numbers leave the default in place.
    """
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except OSError as exc:
        log.warning("Failed to open config file: %s", exc)
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        log.warning("Failed to parse YAML: %s", exc)
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("the configuration must be a mapping")

    config = Config()
    config.command_prefix = _setting(data, "bot", "prefix", str, "") or config.command_prefix
    config.bot_mode = _setting(data, "bot", "mode", str, "") or config.bot_mode
    pool_size = _setting(data, "storage", "message_pool_size", int, 0)
    if pool_size > 0:
        config.max_message_pool = pool_size
    deletion_days = _setting(data, "scheduler", "deletion_days", int, 0)
    if deletion_days > 0:
        config.deletion_days = deletion_days

    if verbose:
        log.info(
            "Configuration:\nPrefix: %s\nMode: %s\nPool size: %d\nDeletion: %d",
            config.command_prefix,
            config.bot_mode,
            config.max_message_pool,
            config.deletion_days,
        )
    return config