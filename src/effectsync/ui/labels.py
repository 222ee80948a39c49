from __future__ import annotations

import re

from ..schema import FieldDescriptor

INVALID_SCHEMA_SUFFIX = " (invalid schema)"

_SPLIT_RE = re.compile(r"[_\-\s]+")


def pretty_name(name: str) -> str:
    """Return a human readable label for an identifier like ``flash_rainbow``."""
    words = [w for w in _SPLIT_RE.split(name) if w]
    if not words:
        return name
    text = " ".join(words)
    return text[0].upper() + text[1:]


def field_label(field: FieldDescriptor) -> str:
    """Return the label for *field*, flagged when its schema is unusable."""
    label = pretty_name(field.name)
    if field.schema is None:
        label += INVALID_SCHEMA_SUFFIX
    return label


__all__ = ["INVALID_SCHEMA_SUFFIX", "field_label", "pretty_name"]
