from __future__ import annotations

from .paths import (
    APP_NAME,
    CONFIG_FILENAME,
    DATA_DIR_ENV_VAR,
    default_config_path,
    default_data_dir,
    expand_path,
)
from .settings import (
    ALL_PHASES,
    CONFIG_ENV_VAR,
    DEFAULT_PHASES,
    OPTIONAL_PHASES,
    DatabaseConfig,
    ScanningConfig,
    Settings,
    data_dir_from_settings,
    get_settings,
    load_settings,
    render_settings_toml,
    resolve_config_path,
    write_settings,
)

__all__ = [
    "ALL_PHASES",
    "APP_NAME",
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "DATA_DIR_ENV_VAR",
    "DEFAULT_PHASES",
    "DatabaseConfig",
    "OPTIONAL_PHASES",
    "ScanningConfig",
    "Settings",
    "data_dir_from_settings",
    "default_config_path",
    "default_data_dir",
    "expand_path",
    "get_settings",
    "load_settings",
    "render_settings_toml",
    "resolve_config_path",
    "write_settings",
]
