from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any


class BaseBackend(ABC):
    """Abstract store file format."""

    suffixes: tuple[str, ...] = ()

    @abstractmethod
    def load(self, path: Path) -> dict[str, Any]:
        pass

    @abstractmethod
    def save(self, path: Path, data: Mapping[str, Any]) -> None:
        pass


def replace_atomically(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as fh:
        fh.write(text)
    tmp.replace(path)
