from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..errors import StoreError
from . import register_backend
from .base import BaseBackend, replace_atomically


@register_backend
class JsonBackend(BaseBackend):
    """JSON store backend."""

    suffixes = (".json",)

    def load(self, path: Path) -> dict[str, Any]:
        path = Path(path)
        if not path.exists():
            return {}
        raw = path.read_text(encoding="utf-8")
        if raw.strip() == "":
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"{path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"{path}: root of the store must be an object")
        return data

    def save(self, path: Path, data: Mapping[str, Any]) -> None:
        try:
            text = json.dumps(data, indent=2, sort_keys=True)
        except (TypeError, ValueError) as exc:
            raise StoreError(f"cannot encode store {path}: {exc}") from exc
        replace_atomically(Path(path), text + "\n")
