from __future__ import annotations

import logging
from pathlib import Path

import pytest

from effectsync import config
from effectsync.config import Settings, configure_logging, load_settings, write_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in (config.ENV_STORE, config.ENV_WORKERS, config.ENV_TIMEOUT, config.ENV_DEBUG):
        monkeypatch.delenv(var, raising=False)


def test_defaults_when_file_missing(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "nothing.ini")
    assert settings.workers == 4
    assert settings.timeout == 10.0
    assert settings.store.name == "store.toml"


def test_write_then_load(tmp_path: Path) -> None:
    path = tmp_path / "conf" / "settings.ini"
    written = Settings(store=tmp_path / "s.json", workers=2, timeout=1.5)
    assert write_settings(written, path) == path
    assert load_settings(path) == written


def test_environment_wins(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "settings.ini"
    path.write_text("[effectsync]\nworkers = 2\ntimeout = 3\n")
    monkeypatch.setenv("EFFECTSYNC_WORKERS", "8")
    monkeypatch.setenv("EFFECTSYNC_STORE", str(tmp_path / "env.toml"))
    settings = load_settings(path)
    assert settings.workers == 8
    assert settings.timeout == 3.0
    assert settings.store == tmp_path / "env.toml"


def test_invalid_values_are_ignored(tmp_path: Path, caplog) -> None:
    path = tmp_path / "settings.ini"
    path.write_text("[effectsync]\nworkers = many\ntimeout = -1\n")
    with caplog.at_level(logging.WARNING, logger="effectsync.config"):
        settings = load_settings(path)
    assert settings.workers == 4
    assert settings.timeout == 10.0
    assert "workers" in caplog.text
    assert "timeout" in caplog.text


def test_unreadable_file_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.ini"
    path.write_text("workers = 2\n")
    assert load_settings(path).workers == 4


def test_other_sections_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "settings.ini"
    path.write_text("[other]\nworkers = 2\n")
    assert config.read_section(path) == {}


def test_configure_logging_from_env(monkeypatch) -> None:
    logger = logging.getLogger("effectsync")
    monkeypatch.setattr(logger, "handlers", [])
    monkeypatch.setattr(logger, "level", logging.NOTSET)
    assert configure_logging() is logger
    assert logger.handlers == []
    monkeypatch.setenv("EFFECTSYNC_DEBUG", "1")
    configure_logging()
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    configure_logging(True)
    assert len(logger.handlers) == 1
