from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from ..errors import StoreError
from . import register_backend
from .base import BaseBackend, replace_atomically


def _plain(value: Any) -> Any:
    unwrap = getattr(value, "unwrap", None)
    return unwrap() if callable(unwrap) else value


def _same(old: Any, new: Any) -> bool:
    # 1 and 1.0 compare equal but must not be written back as each other
    if isinstance(old, list) and isinstance(new, list):
        return len(old) == len(new) and all(_same(a, b) for a, b in zip(old, new))
    if isinstance(old, dict) and isinstance(new, Mapping):
        return set(old) == set(new) and all(_same(old[k], new[k]) for k in old)
    return type(old) is type(new) and old == new


def _merge(target: MutableMapping[str, Any], data: Mapping[str, Any]) -> None:
    """Update *target* in place so that it holds *data*.

    Tables are descended into and unchanged values are left alone, so
    comments and layout around them are kept.
    """
    for key in [k for k in target if k not in data]:
        del target[key]
    for key, value in data.items():
        if key in target:
            current = target[key]
            if isinstance(value, Mapping) and isinstance(current, MutableMapping):
                _merge(current, value)
                continue
            if _same(_plain(current), value):
                continue
        target[key] = value


@register_backend
class TomlBackend(BaseBackend):
    """TOML store backend.

    Saving updates an existing file value by value, so comments next to
    values that did not change survive, including inside tables.
    """

    suffixes = (".toml",)

    def load(self, path: Path) -> dict[str, Any]:
        path = Path(path)
        if not path.exists():
            return {}
        try:
            doc = tomlkit.parse(path.read_text(encoding="utf-8"))
        except TOMLKitError as exc:
            raise StoreError(f"{path}: {exc}") from exc
        return doc.unwrap()

    def save(self, path: Path, data: Mapping[str, Any]) -> None:
        path = Path(path)
        doc = tomlkit.document()
        if path.exists():
            try:
                doc = tomlkit.parse(path.read_text(encoding="utf-8"))
            except TOMLKitError:
                doc = tomlkit.document()
        try:
            _merge(doc, data)
            text = tomlkit.dumps(doc)
        except (TOMLKitError, TypeError, ValueError) as exc:
            raise StoreError(f"cannot encode store {path}: {exc}") from exc
        replace_atomically(path, text)
