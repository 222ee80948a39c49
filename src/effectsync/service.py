"""Data source contract and an in-process implementation.

The state machine never talks to a data source directly.  The runtime calls
an :class:`EffectsService` from worker threads; implementations only need to
be safe for concurrent calls.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Protocol

from .defaults import default_data
from .errors import ApplyError, FetchError
from .models import ControllerConfig, DisplayState, InitialData, Preset

logger = logging.getLogger(__name__)


class EffectsService(Protocol):
    """Operations the editor needs from the source of truth."""

    def fetch_initial_data(self) -> InitialData:
        """Return effects, segments, presets and display state.

        Raises :class:`FetchError` on failure.
        """

    def apply_preset(self, name: str) -> DisplayState:
        """Activate preset *name* and return the resulting display state.

        Raises :class:`ApplyError` on failure.
        """

    def apply_effect_config(self, effect: str, config: Mapping[str, Any]) -> None:
        """Replace the config of *effect*.  Raises :class:`ApplyError`."""

    def apply_config(self, config: ControllerConfig) -> ControllerConfig:
        """Replace the global controller config.  Raises :class:`ApplyError`."""

    def save_preset(
        self, name: str, state: DisplayState, effects: Mapping[str, Mapping[str, Any]]
    ) -> Preset:
        """Store a preset snapshot.  Raises :class:`ApplyError`."""


class MemoryService:
    """:class:`EffectsService` keeping everything in memory.

    ``fail`` maps operation names (``"fetch_initial_data"``,
    ``"apply_preset"`` ...) to exceptions raised on the next calls; it is
    meant for demos and tests.
    """

    def __init__(self, data: InitialData | None = None) -> None:
        self._data = data if data is not None else default_data()
        self._lock = threading.Lock()
        self.fail: dict[str, BaseException] = {}
        self.calls: list[tuple[str, Any]] = []

    @property
    def data(self) -> InitialData:
        with self._lock:
            return self._data

    def _enter(self, operation: str, arg: Any = None) -> None:
        self.calls.append((operation, arg))
        exc = self.fail.get(operation)
        if exc is not None:
            logger.debug("simulated failure of %s: %s", operation, exc)
            raise exc

    def fetch_initial_data(self) -> InitialData:
        with self._lock:
            self._enter("fetch_initial_data")
            return self._data

    def apply_preset(self, name: str) -> DisplayState:
        with self._lock:
            self._enter("apply_preset", name)
            preset = self._data.presets.get(name)
            if preset is None:
                raise ApplyError(f"unknown preset {name!r}")
            effects = dict(self._data.effects)
            for effect, config in preset.effects.items():
                if effect in effects:
                    effects[effect] = effects[effect].with_config(copy.deepcopy(dict(config)))
            self._data = replace(self._data, state=preset.state, effects=effects)
            return preset.state

    def apply_effect_config(self, effect: str, config: Mapping[str, Any]) -> None:
        with self._lock:
            self._enter("apply_effect_config", (effect, config))
            current = self._data.effects.get(effect)
            if current is None:
                raise ApplyError(f"unknown effect {effect!r}")
            effects = dict(self._data.effects)
            effects[effect] = current.with_config(copy.deepcopy(dict(config)))
            self._data = replace(self._data, effects=effects)

    def apply_config(self, config: ControllerConfig) -> ControllerConfig:
        with self._lock:
            self._enter("apply_config", config)
            self._data = replace(self._data, config=config)
            return config

    def save_preset(
        self, name: str, state: DisplayState, effects: Mapping[str, Mapping[str, Any]]
    ) -> Preset:
        with self._lock:
            self._enter("save_preset", name)
            if not name:
                raise ApplyError("preset name must not be empty")
            preset = Preset(name, state, copy.deepcopy({k: dict(v) for k, v in effects.items()}))
            presets = dict(self._data.presets)
            presets[name] = preset
            self._data = replace(self._data, presets=presets)
            return preset


__all__ = ["EffectsService", "FetchError", "ApplyError", "MemoryService"]
