from __future__ import annotations

import json
from pathlib import Path

import pytest

from effectsync.backends import get_backend_for_path
from effectsync.backends.json_backend import JsonBackend
from effectsync.backends.toml_backend import TomlBackend
from effectsync.defaults import default_data
from effectsync.errors import ApplyError, FetchError, StoreError
from effectsync.models import ControllerConfig, DisplayState, SegmentEffectState
from effectsync.store import FileStoreService
from effectsync.ui.core import AppCore
from effectsync.ui.value_parser import InputControl

from tests.utils import ManualExecutor, sample_data


@pytest.fixture(params=["store.toml", "store.json"])
def store(request, tmp_path: Path) -> FileStoreService:
    service = FileStoreService(tmp_path / request.param)
    assert service.init(sample_data())
    return service


def test_backend_registry(tmp_path: Path) -> None:
    assert isinstance(get_backend_for_path(tmp_path / "a.toml"), TomlBackend)
    assert isinstance(get_backend_for_path(tmp_path / "a.JSON"), JsonBackend)
    with pytest.raises(ValueError):
        get_backend_for_path(tmp_path / "a.yaml")


def test_unsupported_suffix(tmp_path: Path) -> None:
    with pytest.raises(StoreError):
        FileStoreService(tmp_path / "store.ini")


def test_round_trip(store: FileStoreService) -> None:
    assert store.fetch_initial_data() == sample_data()
    assert not store.path.with_suffix(store.path.suffix + ".tmp").exists()


def test_init_keeps_existing_file(store: FileStoreService) -> None:
    assert store.init() is False
    assert store.fetch_initial_data() == sample_data()
    assert store.init(force=True) is True
    assert store.fetch_initial_data() == default_data()


def test_missing_store_fails_to_fetch(tmp_path: Path) -> None:
    service = FileStoreService(tmp_path / "nothing.toml")
    assert not service.exists()
    with pytest.raises(FetchError):
        service.fetch_initial_data()
    with pytest.raises(ApplyError):
        service.apply_config(ControllerConfig())


def test_corrupt_store(tmp_path: Path) -> None:
    path = tmp_path / "store.toml"
    path.write_text("[effects\n", encoding="utf-8")
    service = FileStoreService(path)
    with pytest.raises(FetchError):
        service.fetch_initial_data()
    with pytest.raises(ApplyError):
        service.apply_effect_config("lights", {})


def test_malformed_payload_is_a_fetch_error(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text(json.dumps({"segments": {"start": 0}}), encoding="utf-8")
    with pytest.raises(FetchError):
        FileStoreService(path).fetch_initial_data()


def test_apply_effect_config(store: FileStoreService) -> None:
    store.apply_effect_config("lights", {"brightness": 0.9, "count": 4, "label": "hall"})
    data = store.fetch_initial_data()
    assert data.effects["lights"].config == {"brightness": 0.9, "count": 4, "label": "hall"}
    assert data.effects["spin"] == sample_data().effects["spin"]
    with pytest.raises(ApplyError):
        store.apply_effect_config("missing", {})


def test_apply_preset(store: FileStoreService) -> None:
    state = store.apply_preset("dim")
    assert state == DisplayState((SegmentEffectState(0, "spin"),))
    data = store.fetch_initial_data()
    assert data.state == state
    assert data.effects["spin"].config == {"speed": 0.01, "on": False}
    with pytest.raises(ApplyError):
        store.apply_preset("missing")


def test_save_preset(store: FileStoreService) -> None:
    data = store.fetch_initial_data()
    preset = store.save_preset("mine", data.state, {"lights": {"brightness": 0.1}})
    assert preset.name == "mine"
    assert store.fetch_initial_data().presets["mine"] == preset
    with pytest.raises(ApplyError):
        store.save_preset("", data.state, {})


def test_apply_config(store: FileStoreService) -> None:
    config = ControllerConfig(brightness=0.4, as_srgb=True)
    assert store.apply_config(config) == config
    assert store.fetch_initial_data().config == config


def test_toml_store_keeps_comments(tmp_path: Path) -> None:
    service = FileStoreService(tmp_path / "store.toml")
    service.init(sample_data())
    text = service.path.read_text(encoding="utf-8")
    service.path.write_text("# living room strip\n" + text, encoding="utf-8")
    service.apply_config(ControllerConfig(brightness=0.5))
    assert service.path.read_text(encoding="utf-8").startswith("# living room strip")
    assert service.fetch_initial_data().config.brightness == 0.5


def test_unencodable_value_is_an_apply_error(tmp_path: Path) -> None:
    service = FileStoreService(tmp_path / "store.toml")
    service.init(sample_data())
    with pytest.raises(ApplyError):
        service.apply_effect_config("lights", {"brightness": None})
    assert service.fetch_initial_data() == sample_data()


def test_core_over_file_store(store: FileStoreService) -> None:
    executor = ManualExecutor()
    core = AppCore(store, executor=executor)
    core.start()
    executor.run_all()
    assert core.snapshot().ready
    assert core.edit_field(0, "label", InputControl.from_text("porch"))
    executor.run_all()
    assert store.fetch_initial_data().effects["lights"].config["label"] == "porch"
    assert core.snapshot().context.effects["lights"].config["label"] == "porch"


def test_toml_store_keeps_comments_inside_tables(tmp_path: Path) -> None:
    service = FileStoreService(tmp_path / "store.toml")
    service.init(sample_data())
    text = service.path.read_text(encoding="utf-8")
    assert "[config]\n" in text
    service.path.write_text(
        text.replace("[config]\n", "[config]\n# dimmed at night\n"), encoding="utf-8"
    )
    service.apply_config(ControllerConfig(brightness=0.5))
    service.apply_effect_config("lights", {"brightness": 0.7, "count": 3, "label": "hall"})
    text = service.path.read_text(encoding="utf-8")
    assert "# dimmed at night" in text
    data = service.fetch_initial_data()
    assert data.config.brightness == 0.5
    assert data.effects["lights"].config["brightness"] == 0.7


def test_toml_store_keeps_number_types(tmp_path: Path) -> None:
    service = FileStoreService(tmp_path / "store.toml")
    service.init(sample_data())
    service.apply_effect_config("lights", {"brightness": 1, "count": 3, "label": "hall"})
    service.apply_effect_config("lights", {"brightness": 1.0, "count": 3, "label": "hall"})
    brightness = service.fetch_initial_data().effects["lights"].config["brightness"]
    assert brightness == 1.0
    assert isinstance(brightness, float)
