from __future__ import annotations

from effectsync.paths import default_store_path, settings_file, user_config_dir, user_data_dir


def test_user_dirs_absolute() -> None:
    assert user_config_dir().is_absolute()
    assert user_data_dir().is_absolute()


def test_files_live_in_user_dirs() -> None:
    assert settings_file().parent == user_config_dir()
    assert settings_file().name == "settings.ini"
    assert default_store_path().parent == user_data_dir()
    assert default_store_path().suffix == ".toml"


def test_app_name_override(monkeypatch) -> None:
    monkeypatch.setenv("EFFECTSYNC_APP_NAME", "effectsync-test")
    assert user_config_dir().name == "effectsync-test"
    assert user_data_dir().name == "effectsync-test"
