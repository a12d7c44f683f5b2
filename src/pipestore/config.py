"""StoreConfig: project-local config for a pipe-delimited record store.

Default layout (all relative to the project root):

    pipestore.toml        # project config (optional)
    records.txt           # the record file
    records.txt.lock      # advisory lock taken by writers (created on demand)

pipestore.toml example:

    [store]
    path = "data/records.txt"
    delimiter = "|"
    # encoding = "utf-8"   # default: platform default
    locking = true

    [log]
    level = "WARNING"
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pipestore.models import DELIMITER

_CONFIG_FILENAME = "pipestore.toml"
_DEFAULT_STORE_PATH = "records.txt"
_DEFAULT_LOG_LEVEL = "WARNING"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class LogConfig:
    level: str = _DEFAULT_LOG_LEVEL

    @property
    def level_no(self) -> int:
        return logging.getLevelName(self.level)  # type: ignore[no-any-return]


@dataclass
class StoreConfig:
    """Resolved configuration for a record store."""

    root: Path                      # directory that contains pipestore.toml
    path: Path = field(default_factory=Path)
    delimiter: str = DELIMITER
    encoding: str | None = None     # None = platform default
    locking: bool = True
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def config_path(self) -> Path:
        return self.root / _CONFIG_FILENAME


def load_config(root: Path | str | None = None) -> StoreConfig:
    """Load pipestore.toml from root (or search upward from cwd if root is None)."""
    root_path = _find_root(Path(root) if root else Path.cwd())
    config_path = root_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("rb") as f:
            raw = tomllib.load(f)

    store_section = _typed(raw, "pipestore.toml", "store", dict, {})
    log_section = _typed(raw, "pipestore.toml", "log", dict, {})

    delimiter = _typed(store_section, "store", "delimiter", str, DELIMITER)
    if len(delimiter) != 1:
        msg = f"delimiter must be a single character, got {delimiter!r}"
        raise ValueError(msg)

    level = _typed(log_section, "log", "level", str, _DEFAULT_LOG_LEVEL).upper()
    if level not in _LOG_LEVELS:
        msg = f"unknown log level {level!r} (expected one of {', '.join(_LOG_LEVELS)})"
        raise ValueError(msg)

    store_path = _typed(store_section, "store", "path", str, _DEFAULT_STORE_PATH)
    encoding = _typed(store_section, "store", "encoding", str, "")
    locking = _typed(store_section, "store", "locking", bool, True)

    return StoreConfig(
        root=root_path,
        path=root_path / store_path,
        delimiter=delimiter,
        encoding=encoding or None,
        locking=locking,
        log=LogConfig(level=level),
    )


def _typed(section: dict[str, Any], section_name: str, key: str, expected: type, default: Any) -> Any:
    """Return section[key] (or default), raising ValueError on a wrong TOML type."""
    value = section.get(key, default)
    if not isinstance(value, expected):
        msg = f"[{section_name}] {key} must be a {expected.__name__}, got {value!r}"
        raise ValueError(msg)
    return value


def _find_root(start: Path) -> Path:
    """Walk upward from start looking for pipestore.toml."""
    for directory in (start, *start.parents):
        if (directory / _CONFIG_FILENAME).exists():
            return directory
    return start


def init_config(root: Path, path: str | None = None) -> Path:
    """Write a default pipestore.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"pipestore.toml already exists at {config_path}"
        raise FileExistsError(msg)

    store_path = path or _DEFAULT_STORE_PATH
    content = f"""\
[store]
path = "{store_path}"
# delimiter = "|"       # single character, no escaping
# encoding = "utf-8"    # default: platform default
# locking = true        # flock a sidecar .lock file around writes

# [log]
# level = "WARNING"     # DEBUG | INFO | WARNING | ERROR | CRITICAL
"""
    config_path.write_text(content)
    return config_path
