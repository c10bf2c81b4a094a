"""Where camscout keeps its config file and saved scans.

Follows the XDG base directory layout; ``CAMSCOUT_DATA_DIR`` relocates the
data directory without touching the config file.
"""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "camscout"
CONFIG_FILENAME = "config.toml"
DATA_DIR_ENV_VAR = "CAMSCOUT_DATA_DIR"


def _xdg_home(variable: str, *fallback: str) -> Path:
    value = os.environ.get(variable)
    # XDG only honours absolute paths
    if value and os.path.isabs(value):
        return Path(value)
    return Path.home().joinpath(*fallback)


def default_config_path() -> Path:
    return _xdg_home("XDG_CONFIG_HOME", ".config") / APP_NAME / CONFIG_FILENAME


def default_data_dir() -> Path:
    override = os.environ.get(DATA_DIR_ENV_VAR)
    if override:
        return expand_path(override)
    return _xdg_home("XDG_DATA_HOME", ".local", "share") / APP_NAME


def expand_path(value: str) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(value)))
