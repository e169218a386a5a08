"""Locating and reading ``tokenreg.toml``.

``TOKENREG_CONFIG`` names the file outright; otherwise the nearest
``tokenreg.toml`` in the start directory or any of its ancestors wins.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from tokenreg.config.models import RegistryConfig

CONFIG_FILENAME = "tokenreg.toml"
CONFIG_ENV_VAR = "TOKENREG_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Path of the config file that applies at *start* (default: cwd), if any.

    A ``TOKENREG_CONFIG`` pointing at a missing file means no config;
    the walk-up is not attempted.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> RegistryConfig:
    """Validated sections from *path*, or from the file found from *cwd*.

    Defaults when there is no file.
    """
    path = path or find_config(cwd)
    if path is None:
        return RegistryConfig()
    with path.open("rb") as fh:
        return RegistryConfig.model_validate(tomllib.load(fh))
