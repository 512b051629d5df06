"""Locating and reading ``planclone.toml``.

Lookup order:
  1. ``PLANCLONE_CONFIG``: an explicit file. If it does not exist there is
     no config (no fallback to discovery).
  2. Walk-up from the start directory (default: cwd) to the filesystem root,
     the way git finds ``.git/``.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "planclone.toml"
CONFIG_ENV_VAR = "PLANCLONE_CONFIG"

class ConfigFileError(ValueError):
    """planclone.toml exists but cannot be parsed."""


def find_config(start: Path | None = None) -> Path | None:
    """Path of the config file that applies to *start*, or None."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        explicit = Path(env_path)
        return explicit if explicit.is_file() else None

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*, wrapping syntax errors in :class:`ConfigFileError`."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigFileError(msg) from exc
