"""Data model shared by the state machine, the data sources and the UI.

All objects are immutable.  Editing an effect never mutates its config in
place; :meth:`EffectDescriptor.with_config` returns a new descriptor and the
state machine swaps it into a new context.

Every type can be built from and turned back into plain JSON-compatible
mappings so that data sources are free to pick their own wire format.
Malformed payloads raise :class:`~effectsync.errors.PayloadError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .errors import PayloadError

Scalar = str | int | float | bool | None


def _require_mapping(data: object, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise PayloadError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _require_list(value: object, what: str) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        raise PayloadError(f"{what} must be a list, got {type(value).__name__}")
    return list(value)


def _require_int(value: object, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PayloadError(f"{what} must be an integer, got {value!r}")
    return value


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EffectDescriptor:
    """A known effect type with its parameter schema and current values."""

    name: str
    schema: Mapping[str, Any] | bool = field(default_factory=dict)
    config: Mapping[str, Any] = field(default_factory=dict)

    def with_config(self, config: Mapping[str, Any]) -> EffectDescriptor:
        return replace(self, config=config)

    @classmethod
    def from_dict(cls, data: object, *, name: str | None = None) -> EffectDescriptor:
        data = _require_mapping(data, "effect")
        effect_name = data.get("name", name)
        if not isinstance(effect_name, str) or not effect_name:
            raise PayloadError(f"effect name must be a non-empty string, got {effect_name!r}")
        schema = data.get("schema", {})
        # a boolean schema is legal JSON-Schema; keep it and let the
        # introspector degrade it
        if not isinstance(schema, (Mapping, bool)):
            raise PayloadError(f"schema of effect {effect_name!r} must be a mapping")
        config = _require_mapping(data.get("config", {}), f"config of effect {effect_name!r}")
        return cls(name=effect_name, schema=schema, config=dict(config))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "schema": self.schema, "config": dict(self.config)}


# ---------------------------------------------------------------------------
# Segments and display state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Segment:
    """An addressable span of the controlled strip."""

    start: int
    length: int
    inverted: bool = False

    @classmethod
    def from_dict(cls, data: object) -> Segment:
        data = _require_mapping(data, "segment")
        return cls(
            start=_require_int(data.get("start", 0), "segment start"),
            length=_require_int(data.get("length", 0), "segment length"),
            inverted=bool(data.get("inverted", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"start": self.start, "length": self.length, "inverted": self.inverted}


@dataclass(frozen=True)
class SegmentEffectState:
    """Which effect currently runs on a given segment."""

    segment_index: int
    effect: str

    @classmethod
    def from_dict(cls, data: object) -> SegmentEffectState:
        data = _require_mapping(data, "segment effect state")
        effect = data.get("effect")
        if not isinstance(effect, str):
            raise PayloadError(f"segment effect must be a string, got {effect!r}")
        return cls(
            segment_index=_require_int(data.get("segment_index"), "segment index"),
            effect=effect,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"segment_index": self.segment_index, "effect": self.effect}


@dataclass(frozen=True)
class DisplayState:
    """The canonical view of what is currently running."""

    effects: tuple[SegmentEffectState, ...] = ()

    def effect_at(self, segment_index: int) -> SegmentEffectState | None:
        for entry in self.effects:
            if entry.segment_index == segment_index:
                return entry
        return None

    @classmethod
    def from_dict(cls, data: object) -> DisplayState:
        data = _require_mapping(data, "display state")
        entries = _require_list(data.get("effects", []), "display state effects")
        return cls(effects=tuple(SegmentEffectState.from_dict(e) for e in entries))

    def to_dict(self) -> dict[str, Any]:
        return {"effects": [e.to_dict() for e in self.effects]}


# ---------------------------------------------------------------------------
# Presets and global settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Preset:
    """Named snapshot of a full display state and the effect configs."""

    name: str
    state: DisplayState = field(default_factory=DisplayState)
    effects: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: object, *, name: str | None = None) -> Preset:
        data = _require_mapping(data, "preset")
        preset_name = data.get("name", name)
        if not isinstance(preset_name, str) or not preset_name:
            raise PayloadError(f"preset name must be a non-empty string, got {preset_name!r}")
        effects = _require_mapping(data.get("effects", {}), f"effects of preset {preset_name!r}")
        return cls(
            name=preset_name,
            state=DisplayState.from_dict(data.get("state", {})),
            effects={
                k: dict(_require_mapping(v, f"config of {k!r}")) for k, v in effects.items()
            },
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "state": self.state.to_dict(),
            "effects": {k: dict(v) for k, v in self.effects.items()},
        }


@dataclass(frozen=True)
class ControllerConfig:
    """Global output settings of the controller."""

    brightness: float = 1.0
    as_srgb: bool = False

    @classmethod
    def from_dict(cls, data: object) -> ControllerConfig:
        data = _require_mapping(data, "controller config")
        brightness = data.get("brightness", 1.0)
        if isinstance(brightness, bool) or not isinstance(brightness, (int, float)):
            raise PayloadError(f"brightness must be a number, got {brightness!r}")
        return cls(brightness=float(brightness), as_srgb=bool(data.get("as_srgb", False)))

    def to_dict(self) -> dict[str, Any]:
        return {"brightness": self.brightness, "as_srgb": self.as_srgb}


@dataclass(frozen=True)
class InitialData:
    """Everything the editor needs before it can become ready."""

    effects: Mapping[str, EffectDescriptor] = field(default_factory=dict)
    segments: tuple[Segment, ...] = ()
    presets: Mapping[str, Preset] = field(default_factory=dict)
    state: DisplayState = field(default_factory=DisplayState)
    config: ControllerConfig = field(default_factory=ControllerConfig)

    @classmethod
    def from_dict(cls, data: object) -> InitialData:
        data = _require_mapping(data, "initial data")
        raw_effects = data.get("effects", {})
        if isinstance(raw_effects, Mapping):
            effects = [EffectDescriptor.from_dict(v, name=k) for k, v in raw_effects.items()]
        else:
            effects = [EffectDescriptor.from_dict(v) for v in _require_list(raw_effects, "effects")]
        segments = _require_list(data.get("segments", []), "segments")
        raw_presets = _require_mapping(data.get("presets", {}), "presets")
        return cls(
            effects={e.name: e for e in effects},
            segments=tuple(Segment.from_dict(s) for s in segments),
            presets={k: Preset.from_dict(v, name=k) for k, v in raw_presets.items()},
            state=DisplayState.from_dict(data.get("state", {})),
            config=ControllerConfig.from_dict(data.get("config", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "effects": {k: v.to_dict() for k, v in self.effects.items()},
            "segments": [s.to_dict() for s in self.segments],
            "presets": {k: v.to_dict() for k, v in self.presets.items()},
            "state": self.state.to_dict(),
            "config": self.config.to_dict(),
        }


__all__ = [
    "ControllerConfig",
    "DisplayState",
    "EffectDescriptor",
    "InitialData",
    "Preset",
    "Scalar",
    "Segment",
    "SegmentEffectState",
]
