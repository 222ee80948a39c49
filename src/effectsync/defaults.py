"""Built-in effect catalog used to seed new stores."""

from __future__ import annotations

from typing import Any

from .models import (
    ControllerConfig,
    DisplayState,
    EffectDescriptor,
    InitialData,
    Preset,
    Segment,
    SegmentEffectState,
)

STRIPS = 8
LEDS_PER_STRIP = 75


def _schema(title: str, **properties: dict[str, Any]) -> dict[str, Any]:
    return {"title": title, "type": "object", "properties": properties}


def _number(**kw: Any) -> dict[str, Any]:
    return {"type": "number", "format": "float", **kw}


def _integer(**kw: Any) -> dict[str, Any]:
    return {"type": "integer", "format": "uint", "minimum": 0, **kw}


def _boolean() -> dict[str, Any]:
    return {"type": "boolean"}


def _color() -> dict[str, Any]:
    return {"type": "string", "description": "hex colour, e.g. #ff0000"}


DEFAULT_EFFECTS: dict[str, EffectDescriptor] = {
    e.name: e
    for e in (
        EffectDescriptor(
            "rainbow",
            _schema("RainbowConfig", speed=_number(), density=_number()),
            {"speed": 0.25, "density": 1.0},
        ),
        EffectDescriptor(
            "static_rainbow",
            _schema("StaticRainbowConfig", density=_number()),
            {"density": 1.0},
        ),
        EffectDescriptor(
            "flash_rainbow",
            _schema("FlashRainbowConfig", delay=_integer(), fade=_number()),
            {"delay": 500, "fade": 0.9},
        ),
        EffectDescriptor(
            "meteors",
            _schema(
                "MeteorsConfig",
                rate=_number(),
                min_speed=_number(),
                max_speed=_number(),
                fade=_number(),
            ),
            {"rate": 0.02, "min_speed": 0.5, "max_speed": 2.0, "fade": 0.96},
        ),
        EffectDescriptor(
            "balls",
            _schema("BallsConfig", balls=_integer(), gravity=_number(), bounce=_boolean()),
            {"balls": 3, "gravity": 9.81, "bounce": True},
        ),
        EffectDescriptor(
            "explosions",
            _schema("ExplosionsConfig", rate=_number(), fade=_number()),
            {"rate": 0.05, "fade": 0.9},
        ),
        EffectDescriptor(
            "snake",
            _schema("SnakeConfig", length=_integer(), speed=_number(), color=_color()),
            {"length": 10, "speed": 1.0, "color": "#00ff00"},
        ),
        EffectDescriptor(
            "random",
            _schema("RandomNoiseConfig", speed=_number(), scale=_number()),
            {"speed": 0.1, "scale": 0.05},
        ),
        EffectDescriptor(
            "police",
            _schema("PoliceConfig", color=_color()),
            {"color": "#0000ff"},
        ),
        EffectDescriptor(
            "moving_lights",
            _schema("MovingLightsConfig", speed=_number(), spacing=_integer(), on=_boolean()),
            {"speed": 0.5, "spacing": 5, "on": True},
        ),
    )
}


def default_segments() -> tuple[Segment, ...]:
    return tuple(Segment(start=i * LEDS_PER_STRIP, length=LEDS_PER_STRIP) for i in range(STRIPS))


def default_data() -> InitialData:
    """Return a fresh copy of the built-in catalog with one segment running."""
    state = DisplayState((SegmentEffectState(0, "rainbow"),))
    presets = {
        "calm": Preset(
            "calm",
            DisplayState((SegmentEffectState(0, "static_rainbow"),)),
            {"static_rainbow": {"density": 0.5}},
        ),
        "party": Preset(
            "party",
            DisplayState((SegmentEffectState(0, "flash_rainbow"),)),
            {"flash_rainbow": {"delay": 250, "fade": 0.8}},
        ),
    }
    return InitialData(
        effects={k: v.with_config(dict(v.config)) for k, v in DEFAULT_EFFECTS.items()},
        segments=default_segments(),
        presets=presets,
        state=state,
        config=ControllerConfig(),
    )


__all__ = ["DEFAULT_EFFECTS", "default_data", "default_segments"]
