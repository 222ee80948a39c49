from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from effectsync.models import EffectDescriptor
from effectsync.ui.labels import pretty_name
from effectsync.ui.settings_form import FieldMemo, SettingsForm
from effectsync.ui.value_parser import InputControl, InputKind

from tests.utils import SPEED_SCHEMA


def test_pretty_name() -> None:
    assert pretty_name("flash_rainbow") == "Flash rainbow"
    assert pretty_name("speed") == "Speed"
    assert pretty_name("min-speed") == "Min speed"
    assert pretty_name("__") == "__"


def test_rows_for_valid_and_invalid_fields() -> None:
    effect = EffectDescriptor("spin", SPEED_SCHEMA, {"speed": 0.12345, "on": True, "foo": 5})
    rows = SettingsForm().rows(effect)
    assert [r.name for r in rows] == ["speed", "on", "foo"]
    speed, on, foo = rows
    assert speed.kind is InputKind.NUMERIC
    assert speed.display == 0.123
    assert speed.label == "Speed"
    assert not speed.disabled
    assert on.kind is InputKind.BOOLEAN
    assert foo.disabled
    assert foo.label == "Foo (invalid schema)"
    assert foo.kind is InputKind.TEXT
    assert foo.error is not None


def test_edit_produces_patched_config() -> None:
    effect = EffectDescriptor("spin", SPEED_SCHEMA, {"speed": 0.12345, "on": True})
    form = SettingsForm()
    config = form.edit(effect, "speed", InputControl("0.5", 0.5))
    assert config == {"speed": 0.5, "on": True}
    assert effect.config == {"speed": 0.12345, "on": True}


def test_edit_refuses_invalid_and_unknown_fields() -> None:
    effect = EffectDescriptor("spin", SPEED_SCHEMA, {"speed": 1.0, "foo": 5})
    form = SettingsForm()
    assert form.edit(effect, "foo", InputControl.from_text("6")) is None
    assert form.edit(effect, "missing", InputControl.from_text("6")) is None


def test_memo_reuses_fields_for_same_objects() -> None:
    memo = FieldMemo()
    config = {"speed": 1.0}
    first = memo(config, SPEED_SCHEMA)
    assert memo(config, SPEED_SCHEMA) is first
    replaced = memo({"speed": 2.0}, SPEED_SCHEMA)
    assert replaced is not first
    assert replaced[0].value == 2.0


def test_form_title() -> None:
    effect = EffectDescriptor("moving_lights", {}, {})
    form = SettingsForm()
    assert form.title(effect) == "Moving lights"
    assert form.rows(effect) == []


def test_memo_shared_between_threads() -> None:
    memo = FieldMemo()
    configs = [{"speed": float(i)} for i in range(8)]

    def derive(i: int) -> bool:
        config = configs[i % len(configs)]
        fields = memo(config, SPEED_SCHEMA)
        return [f.value for f in fields] == [config["speed"]]

    with ThreadPoolExecutor(max_workers=4) as pool:
        assert all(pool.map(derive, range(400)))
