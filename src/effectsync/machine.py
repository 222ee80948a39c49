"""Reconciliation state machine.

The machine is a pure function, :func:`transition`, over
``(UIState, Context, message)``.  It never performs I/O itself; instead it
returns request objects which the runtime (:class:`effectsync.ui.core.AppCore`)
executes asynchronously and answers with result messages.

States::

    loading --InitialDataLoaded--> ready
    loading --InitialDataFailed--> error
    ready   --any apply failure--> error
    error   --Retry-------------> loading

Every request carries a sequence number taken from a counter in the
context.  Results are matched against the latest number issued for the same
request key; anything older is stale and dropped.  Results that predate the
initial load the current data came from are stale as well.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

from .errors import UnknownMessageError
from .models import (
    ControllerConfig,
    DisplayState,
    EffectDescriptor,
    InitialData,
    Preset,
    Segment,
)

logger = logging.getLogger(__name__)


class UIState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Context:
    """Data carried across all states."""

    config: ControllerConfig = field(default_factory=ControllerConfig)
    segments: tuple[Segment, ...] = ()
    effects: Mapping[str, EffectDescriptor] = field(default_factory=dict)
    presets: Mapping[str, Preset] = field(default_factory=dict)
    state: DisplayState = field(default_factory=DisplayState)
    next_seq: int = 1
    latest: Mapping[str, int] = field(default_factory=dict)
    loaded_seq: int = 0
    # configs sent to the data source and not confirmed yet, per effect
    proposed: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def issue(self, key: str) -> tuple[Context, int]:
        """Reserve the next sequence number for a request under *key*."""
        seq = self.next_seq
        latest = dict(self.latest)
        latest[key] = seq
        return replace(self, next_seq=seq + 1, latest=latest), seq

    def is_current(self, key: str, seq: int) -> bool:
        return seq > self.loaded_seq and seq >= self.latest.get(key, 0)

    def effect_on_segment(self, segment_index: int) -> EffectDescriptor | None:
        entry = self.state.effect_at(segment_index)
        if entry is None:
            return None
        return self.effects.get(entry.effect)

    def effect_config(self, effect: str) -> Mapping[str, Any]:
        """Return the newest config of *effect*, including unconfirmed edits."""
        if effect in self.proposed:
            return self.proposed[effect]
        current = self.effects.get(effect)
        return {} if current is None else current.config


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Retry:
    pass


@dataclass(frozen=True)
class LoadPreset:
    name: str


@dataclass(frozen=True)
class SetEffectConfig:
    idx: int
    effect: str
    config: Mapping[str, Any]


@dataclass(frozen=True)
class SetConfig:
    config: ControllerConfig


@dataclass(frozen=True)
class SavePreset:
    name: str


@dataclass(frozen=True)
class InitialDataLoaded:
    seq: int
    data: InitialData


@dataclass(frozen=True)
class InitialDataFailed:
    seq: int
    error: BaseException


@dataclass(frozen=True)
class PresetApplied:
    seq: int
    name: str
    state: DisplayState


@dataclass(frozen=True)
class PresetSaved:
    seq: int
    preset: Preset


@dataclass(frozen=True)
class EffectConfigApplied:
    seq: int
    effect: str
    config: Mapping[str, Any]


@dataclass(frozen=True)
class ControllerConfigApplied:
    seq: int
    config: ControllerConfig


@dataclass(frozen=True)
class ApplyFailed:
    seq: int
    key: str
    error: BaseException


Command = Union[Retry, LoadPreset, SetEffectConfig, SetConfig, SavePreset]
Result = Union[
    InitialDataLoaded,
    InitialDataFailed,
    PresetApplied,
    PresetSaved,
    EffectConfigApplied,
    ControllerConfigApplied,
    ApplyFailed,
]
Message = Union[Command, Result]

_COMMANDS = (Retry, LoadPreset, SetEffectConfig, SetConfig, SavePreset)
_RESULTS = (
    InitialDataLoaded,
    InitialDataFailed,
    PresetApplied,
    PresetSaved,
    EffectConfigApplied,
    ControllerConfigApplied,
    ApplyFailed,
)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

INITIAL_KEY = "initial"
PRESET_KEY = "preset"
CONFIG_KEY = "config"


def effect_key(effect: str) -> str:
    return f"effect:{effect}"


def save_key(name: str) -> str:
    return f"save:{name}"


@dataclass(frozen=True)
class FetchInitialData:
    seq: int
    key: str = INITIAL_KEY


@dataclass(frozen=True)
class ApplyPreset:
    seq: int
    name: str
    key: str = PRESET_KEY


@dataclass(frozen=True)
class ApplyEffectConfig:
    seq: int
    effect: str
    config: Mapping[str, Any]

    @property
    def key(self) -> str:
        return effect_key(self.effect)


@dataclass(frozen=True)
class ApplyControllerConfig:
    seq: int
    config: ControllerConfig
    key: str = CONFIG_KEY


@dataclass(frozen=True)
class SavePresetRequest:
    seq: int
    name: str
    state: DisplayState
    effects: Mapping[str, Mapping[str, Any]]

    @property
    def key(self) -> str:
        return save_key(self.name)


Request = Union[
    FetchInitialData,
    ApplyPreset,
    ApplyEffectConfig,
    ApplyControllerConfig,
    SavePresetRequest,
]


@dataclass(frozen=True)
class Transition:
    state: UIState
    context: Context
    requests: tuple[Request, ...] = ()


# ---------------------------------------------------------------------------
# Transition function
# ---------------------------------------------------------------------------


def start(context: Context | None = None) -> Transition:
    """Return the initial transition: ``loading`` plus the initial fetch."""
    ctx, seq = (context or Context()).issue(INITIAL_KEY)
    return Transition(UIState.LOADING, ctx, (FetchInitialData(seq),))


def _ignore(state: UIState, context: Context, message: Message, reason: str) -> Transition:
    logger.debug("ignoring %s in %s: %s", type(message).__name__, state.value, reason)
    return Transition(state, context)


def _loaded(context: Context, msg: InitialDataLoaded) -> Transition:
    data = msg.data
    ctx = replace(
        context,
        config=data.config,
        segments=tuple(data.segments),
        effects=dict(data.effects),
        presets=dict(data.presets),
        state=data.state,
        loaded_seq=msg.seq,
        proposed={},
    )
    return Transition(UIState.READY, ctx)


def _on_loading(context: Context, msg: Message) -> Transition:
    state = UIState.LOADING
    if isinstance(msg, (InitialDataLoaded, InitialDataFailed)):
        if msg.seq < context.latest.get(INITIAL_KEY, 0):
            return _ignore(state, context, msg, "stale initial fetch")
        if isinstance(msg, InitialDataLoaded):
            return _loaded(context, msg)
        logger.warning("initial data fetch failed: %s", msg.error)
        return Transition(UIState.ERROR, context)
    return _ignore(state, context, msg, "not accepted while loading")


def _on_error(context: Context, msg: Message) -> Transition:
    if isinstance(msg, Retry):
        ctx, seq = context.issue(INITIAL_KEY)
        return Transition(UIState.LOADING, ctx, (FetchInitialData(seq),))
    return _ignore(UIState.ERROR, context, msg, "not accepted in error state")


def _claim_preset_effects(context: Context, name: str, seq: int) -> Context:
    """Make preset request *seq* the latest request for the preset's effects.

    Effect edits issued before the preset are superseded by it, edits issued
    after it supersede the preset's config for that effect.
    """
    preset = context.presets.get(name)
    if preset is None:
        return context
    latest = dict(context.latest)
    proposed = dict(context.proposed)
    for effect in preset.effects:
        latest[effect_key(effect)] = seq
        proposed.pop(effect, None)
    return replace(context, latest=latest, proposed=proposed)


def _on_ready_command(context: Context, msg: Command) -> Transition:
    state = UIState.READY
    if isinstance(msg, LoadPreset):
        ctx, seq = context.issue(PRESET_KEY)
        ctx = _claim_preset_effects(ctx, msg.name, seq)
        return Transition(state, ctx, (ApplyPreset(seq, msg.name),))

    if isinstance(msg, SetEffectConfig):
        if msg.effect not in context.effects:
            return _ignore(state, context, msg, f"unknown effect {msg.effect!r}")
        entry = context.state.effect_at(msg.idx)
        if entry is None or entry.effect != msg.effect:
            return _ignore(state, context, msg, f"segment {msg.idx} does not run {msg.effect!r}")
        ctx, seq = context.issue(effect_key(msg.effect))
        config = dict(msg.config)
        ctx = replace(ctx, proposed={**ctx.proposed, msg.effect: config})
        return Transition(state, ctx, (ApplyEffectConfig(seq, msg.effect, config),))

    if isinstance(msg, SetConfig):
        ctx, seq = context.issue(CONFIG_KEY)
        return Transition(state, ctx, (ApplyControllerConfig(seq, msg.config),))

    if isinstance(msg, SavePreset):
        ctx, seq = context.issue(save_key(msg.name))
        configs = {name: dict(e.config) for name, e in context.effects.items()}
        return Transition(state, ctx, (SavePresetRequest(seq, msg.name, context.state, configs),))

    return _ignore(state, context, msg, "retry is only accepted in error state")


def _result_key(msg: Result) -> str:
    if isinstance(msg, PresetApplied):
        return PRESET_KEY
    if isinstance(msg, PresetSaved):
        return save_key(msg.preset.name)
    if isinstance(msg, EffectConfigApplied):
        return effect_key(msg.effect)
    if isinstance(msg, ControllerConfigApplied):
        return CONFIG_KEY
    if isinstance(msg, ApplyFailed):
        return msg.key
    return INITIAL_KEY


def _with_preset(context: Context, msg: PresetApplied) -> Context:
    # the data source applied the preset's effect configs as well; mirror
    # them for effects the catalog knows about and nobody edited since
    effects = dict(context.effects)
    preset = context.presets.get(msg.name)
    if preset is not None:
        for name, config in preset.effects.items():
            if name not in effects or context.latest.get(effect_key(name), 0) > msg.seq:
                continue
            effects[name] = effects[name].with_config(dict(config))
    return replace(context, state=msg.state, effects=effects)


def _on_ready_result(context: Context, msg: Result) -> Transition:
    state = UIState.READY
    if isinstance(msg, (InitialDataLoaded, InitialDataFailed)):
        return _ignore(state, context, msg, "initial data already loaded")
    key = _result_key(msg)
    if not context.is_current(key, msg.seq):
        return _ignore(state, context, msg, f"stale response #{msg.seq} for {key}")

    if isinstance(msg, ApplyFailed):
        logger.warning("request %s #%d failed: %s", key, msg.seq, msg.error)
        return Transition(UIState.ERROR, context)

    if isinstance(msg, PresetApplied):
        return Transition(state, _with_preset(context, msg))

    if isinstance(msg, EffectConfigApplied):
        current = context.effects.get(msg.effect)
        if current is None:
            return _ignore(state, context, msg, f"unknown effect {msg.effect!r}")
        effects = dict(context.effects)
        effects[msg.effect] = current.with_config(dict(msg.config))
        proposed = dict(context.proposed)
        proposed.pop(msg.effect, None)
        return Transition(state, replace(context, effects=effects, proposed=proposed))

    if isinstance(msg, ControllerConfigApplied):
        return Transition(state, replace(context, config=msg.config))

    presets = dict(context.presets)
    presets[msg.preset.name] = msg.preset
    return Transition(state, replace(context, presets=presets))


def is_message(obj: object) -> bool:
    return isinstance(obj, _COMMANDS + _RESULTS)


def transition(state: UIState, context: Context, message: Message) -> Transition:
    """Return the next state, context and requests for *message*.

    Commands that are not valid in *state* are ignored.  Raises
    :class:`UnknownMessageError` for objects that are not messages.
    """
    if not is_message(message):
        raise UnknownMessageError(f"unknown message {message!r}")
    if state is UIState.LOADING:
        return _on_loading(context, message)
    if state is UIState.ERROR:
        return _on_error(context, message)
    if isinstance(message, _COMMANDS):
        return _on_ready_command(context, message)
    return _on_ready_result(context, message)


__all__ = [
    "ApplyControllerConfig",
    "ApplyEffectConfig",
    "ApplyFailed",
    "ApplyPreset",
    "Command",
    "Context",
    "ControllerConfigApplied",
    "EffectConfigApplied",
    "FetchInitialData",
    "InitialDataFailed",
    "InitialDataLoaded",
    "LoadPreset",
    "Message",
    "PresetApplied",
    "PresetSaved",
    "Request",
    "Result",
    "Retry",
    "SavePreset",
    "SavePresetRequest",
    "SetConfig",
    "SetEffectConfig",
    "Transition",
    "UIState",
    "effect_key",
    "is_message",
    "save_key",
    "start",
    "transition",
]
