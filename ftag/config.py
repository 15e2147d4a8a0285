"""
Configuration for the tag store.

Settings come from three layers, later ones winning:
1. Defaults (a `.ftagdb` store found by walking up from the current directory)
2. An optional TOML file, `[ftag]` table
3. Environment variables (FTAG_DATABASE, FTAG_DIRECTORY, FTAG_SHOW_HIDDEN,
   FTAG_STRATEGY)

The CLI applies its own options on top of the result.
"""

import enum
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


DEFAULT_DATABASE = ".ftagdb"
MEMORY_DATABASE = ":memory:"
HIDDEN_MARKER = "."
CONFIG_FILENAME = "config.toml"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class FilterStrategy(str, enum.Enum):
    """How a filter on several tags is turned into a query."""

    # Resolve names to ids, then join the ids given as VALUES rows; ascending.
    RESOLVE = "resolve"
    # One select with `name IN (?, ...)`; descending.
    IN_LIST = "in-list"


@dataclass
class FtagConfig:
    """Settings consumed by TagStore.open() and the CLI."""
    database: str = DEFAULT_DATABASE
    directory: Optional[Path] = None
    show_hidden: bool = False
    strategy: FilterStrategy = FilterStrategy.RESOLVE


def get_config_path() -> Path:
    """
    Path of the TOML config file.

    Priority:
    1. FTAG_CONFIG environment variable
    2. $XDG_CONFIG_HOME/ftag/config.toml
    3. ~/.config/ftag/config.toml
    """
    override = os.environ.get("FTAG_CONFIG")
    if override:
        return Path(override).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "ftag" / CONFIG_FILENAME


def parse_bool(value: Any) -> bool:
    """Parse a boolean from TOML or an environment string."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean: {value!r}")


def parse_strategy(value: Any) -> FilterStrategy:
    """Parse a filter strategy name ("resolve" or "in-list")."""
    try:
        return FilterStrategy(str(value).strip().lower().replace("_", "-"))
    except ValueError:
        choices = ", ".join(s.value for s in FilterStrategy)
        raise ValueError(f"Unknown filter strategy {value!r} (expected one of: {choices})") from None


def _apply(config: FtagConfig, key: str, value: Any, source: str) -> None:
    if key == "database":
        if not isinstance(value, str) or not value:
            raise ValueError(f"{source}: 'database' must be a non-empty string")
        if value != MEMORY_DATABASE and os.sep in value:
            raise ValueError(f"{source}: 'database' is a file name, not a path: {value!r}")
        config.database = value
    elif key == "directory":
        config.directory = Path(str(value)).expanduser() if value else None
    elif key == "show_hidden":
        config.show_hidden = parse_bool(value)
    elif key == "strategy":
        config.strategy = parse_strategy(value)
    else:
        raise ValueError(f"{source}: unknown setting {key!r}")


def load_config(config_path: Optional[Path] = None) -> FtagConfig:
    """
    Load configuration from TOML file and environment.

    A missing config file is not an error.

    Raises:
        ValueError: If the file or an environment variable holds an invalid
            setting, or the file is not valid TOML
    """
    config = FtagConfig()

    path = config_path if config_path is not None else get_config_path()
    if path.is_file():
        with open(path, "rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid config file {path}: {e}") from e
        for key, value in data.get("ftag", {}).items():
            _apply(config, key, value, str(path))

    env_keys = {
        "FTAG_DATABASE": "database",
        "FTAG_DIRECTORY": "directory",
        "FTAG_SHOW_HIDDEN": "show_hidden",
        "FTAG_STRATEGY": "strategy",
    }
    for env_name, key in env_keys.items():
        value = os.environ.get(env_name)
        if value is not None:
            _apply(config, key, value, env_name)

    return config
