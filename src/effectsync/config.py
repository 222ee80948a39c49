from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .paths import default_store_path, settings_file

logger = logging.getLogger(__name__)

SECTION = "effectsync"

ENV_STORE = "EFFECTSYNC_STORE"
ENV_WORKERS = "EFFECTSYNC_WORKERS"
ENV_TIMEOUT = "EFFECTSYNC_TIMEOUT"
ENV_DEBUG = "EFFECTSYNC_DEBUG"


@dataclass(frozen=True)
class Settings:
    """Runtime settings of the editor."""

    store: Path = field(default_factory=default_store_path)
    workers: int = 4
    timeout: float = 10.0


# ---------------------------------------------------------------------------
# Reading helpers
# ---------------------------------------------------------------------------

def read_section(path: Path, *, section: str = SECTION) -> dict[str, str]:
    parser = configparser.ConfigParser()
    try:
        parser.read(path)
    except configparser.Error as exc:
        logger.warning("Failed to read config %s: %s", path, exc)
        return {}
    if not parser.has_section(section):
        return {}
    return dict(parser.items(section))


def _coerce(raw: dict[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if raw.get("store"):
        out["store"] = Path(raw["store"]).expanduser()
    for key, conv in (("workers", int), ("timeout", float)):
        if key not in raw:
            continue
        try:
            value = conv(raw[key])
        except ValueError:
            logger.warning("Ignoring invalid %s setting %r", key, raw[key])
            continue
        if value <= 0:
            logger.warning("Ignoring non-positive %s setting %r", key, raw[key])
            continue
        out[key] = value
    return out


def load_settings(path: Path | None = None) -> Settings:
    """Return settings from the INI file at *path* and the environment.

    Environment variables win over the file; invalid values are logged and
    replaced by defaults.
    """
    raw = read_section(path or settings_file())
    env = {
        "store": os.environ.get(ENV_STORE),
        "workers": os.environ.get(ENV_WORKERS),
        "timeout": os.environ.get(ENV_TIMEOUT),
    }
    raw.update({k: v for k, v in env.items() if v})
    return Settings(**_coerce(raw))


def write_settings(settings: Settings, path: Path | None = None) -> Path:
    target = path or settings_file()
    parser = configparser.ConfigParser()
    parser[SECTION] = {
        "store": str(settings.store),
        "workers": str(settings.workers),
        "timeout": str(settings.timeout),
    }
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(target.suffix + ".tmp")
    with tmp.open("w") as fh:
        parser.write(fh)
    tmp.replace(target)
    return target


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def configure_logging(debug: bool | None = None) -> logging.Logger:
    """Attach a stream handler to the package logger when debugging."""
    root = logging.getLogger("effectsync")
    if debug is None:
        debug = bool(os.environ.get(ENV_DEBUG))
    if debug and not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s:%(message)s"))
        root.addHandler(handler)
        root.setLevel(logging.DEBUG)
    return root


__all__ = ["Settings", "configure_logging", "load_settings", "read_section", "write_settings"]
