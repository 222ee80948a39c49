"""File backed :class:`~effectsync.service.EffectsService`.

The whole catalog lives in one document whose format is picked from the
file suffix (``.toml`` or ``.json``)::

    [config]
    brightness = 1.0
    as_srgb = false

    [effects.rainbow]
    name = "rainbow"
    schema = {...}
    config = {speed = 0.25, density = 1.0}

    [state]
    effects = [{segment_index = 0, effect = "rainbow"}]

Every operation reads the file, applies one change and writes it back
atomically.  Failures surface as :class:`FetchError` or :class:`ApplyError`.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from .backends import get_backend_for_path
from .defaults import default_data
from .errors import ApplyError, FetchError, PayloadError, StoreError
from .models import ControllerConfig, DisplayState, InitialData, Preset

logger = logging.getLogger(__name__)


class FileStoreService:
    """Effects service reading and writing a local store file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        try:
            self._backend = get_backend_for_path(self.path)
        except ValueError as exc:
            raise StoreError(str(exc)) from exc
        self._lock = threading.Lock()

    # -- helpers -----------------------------------------------------
    def exists(self) -> bool:
        return self.path.is_file()

    def init(self, data: InitialData | None = None, *, force: bool = False) -> bool:
        """Seed the store with *data* (the built-in catalog by default).

        Returns ``False`` without touching the file when it already exists
        and *force* is not set.
        """
        with self._lock:
            if self.exists() and not force:
                return False
            self._backend.save(self.path, (data or default_data()).to_dict())
            logger.debug("seeded store %s", self.path)
            return True

    def _read(self) -> dict[str, Any]:
        if not self.exists():
            raise StoreError(f"store {self.path} does not exist")
        return self._backend.load(self.path)

    def _update(self, what: str, change: Callable[[dict[str, Any]], Any]) -> Any:
        with self._lock:
            try:
                doc = self._read()
                result = change(doc)
                InitialData.from_dict(doc)
                self._backend.save(self.path, doc)
            except (StoreError, PayloadError, OSError) as exc:
                raise ApplyError(f"{what} failed: {exc}") from exc
            logger.debug("%s written to %s", what, self.path)
            return result

    # -- EffectsService ----------------------------------------------
    def fetch_initial_data(self) -> InitialData:
        with self._lock:
            try:
                return InitialData.from_dict(self._read())
            except (StoreError, PayloadError, OSError) as exc:
                raise FetchError(f"loading {self.path} failed: {exc}") from exc

    def apply_preset(self, name: str) -> DisplayState:
        def change(doc: dict[str, Any]) -> DisplayState:
            raw = doc.get("presets", {}).get(name)
            if raw is None:
                raise ApplyError(f"unknown preset {name!r}")
            preset = Preset.from_dict(raw, name=name)
            doc["state"] = preset.state.to_dict()
            effects = doc.setdefault("effects", {})
            for effect, config in preset.effects.items():
                if effect in effects:
                    effects[effect]["config"] = copy.deepcopy(dict(config))
            return preset.state

        return self._update(f"applying preset {name!r}", change)

    def apply_effect_config(self, effect: str, config: Mapping[str, Any]) -> None:
        def change(doc: dict[str, Any]) -> None:
            entry = doc.get("effects", {}).get(effect)
            if entry is None:
                raise ApplyError(f"unknown effect {effect!r}")
            entry["config"] = copy.deepcopy(dict(config))

        self._update(f"applying config of {effect!r}", change)

    def apply_config(self, config: ControllerConfig) -> ControllerConfig:
        def change(doc: dict[str, Any]) -> ControllerConfig:
            doc["config"] = config.to_dict()
            return config

        return self._update("applying controller config", change)

    def save_preset(
        self, name: str, state: DisplayState, effects: Mapping[str, Mapping[str, Any]]
    ) -> Preset:
        if not name:
            raise ApplyError("preset name must not be empty")
        preset = Preset(name, state, copy.deepcopy({k: dict(v) for k, v in effects.items()}))

        def change(doc: dict[str, Any]) -> Preset:
            doc.setdefault("presets", {})[name] = preset.to_dict()
            return preset

        return self._update(f"saving preset {name!r}", change)


__all__ = ["FileStoreService"]
