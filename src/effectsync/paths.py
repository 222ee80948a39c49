from __future__ import annotations

import os
from pathlib import Path

from platformdirs import (
    user_config_dir as _uc,
    user_data_dir as _ud,
)

# ---------------------------------------------------------------------------
# User directories
# ---------------------------------------------------------------------------

def _app_name(default: str) -> str:
    return os.getenv("EFFECTSYNC_APP_NAME", default)

def user_config_dir(app_name: str = "effectsync") -> Path:
    app = _app_name(app_name)
    return Path(_uc(appname=app)).resolve()

def user_data_dir(app_name: str = "effectsync") -> Path:
    app = _app_name(app_name)
    return Path(_ud(appname=app)).resolve()

# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def settings_file() -> Path:
    """Return the INI file holding runtime settings."""
    return user_config_dir() / "settings.ini"

def default_store_path() -> Path:
    """Return the default location of the TOML effect store."""
    return user_data_dir() / "store.toml"
