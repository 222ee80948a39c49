from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any


def apply_patch(config: Mapping[str, Any], field: str, value: Any) -> dict[str, Any]:
    """Return a copy of *config* with *field* set to *value*.

    The copy is deep so that nested containers are never shared between the
    old and the new revision.  *config* itself is left untouched.  *field*
    is expected to be one of the keys already present in *config*.
    """
    patched = copy.deepcopy(dict(config))
    patched[field] = value
    return patched


__all__ = ["apply_patch"]
