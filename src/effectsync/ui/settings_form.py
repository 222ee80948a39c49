"""Toolkit independent model of the effect settings form.

Front-ends render :class:`FieldRow` objects and hand user input back through
:meth:`SettingsForm.edit`, which yields the new config to send to the state
machine.  Rows are rebuilt from the stored config on every render; nothing
shown here is ever written back except through an edit.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..models import EffectDescriptor
from ..patch import apply_patch
from ..schema import FieldDescriptor, derive_fields
from .labels import field_label, pretty_name
from .value_parser import Control, InputKind, display_value, input_kind, parse_input


@dataclass(frozen=True)
class FieldRow:
    name: str
    label: str
    kind: InputKind
    display: Any
    disabled: bool
    error: str | None = None


class FieldMemo:
    """Cache :func:`derive_fields` on the identity of its arguments.

    Configs are replaced rather than mutated, so identity is a sound key.
    Safe to share between threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._key: tuple[int, int] | None = None
        self._refs: tuple[object, object] | None = None
        self._fields: list[FieldDescriptor] = []

    def __call__(self, config: Mapping[str, Any], schema: object) -> list[FieldDescriptor]:
        key = (id(config), id(schema))
        with self._lock:
            if key != self._key:
                self._fields = derive_fields(config, schema)
                self._key = key
                # hold references so the ids cannot be recycled
                self._refs = (config, schema)
            return self._fields


def row_for(field: FieldDescriptor) -> FieldRow:
    return FieldRow(
        name=field.name,
        label=field_label(field),
        kind=input_kind(field.schema),
        display=display_value(field.schema, field.value),
        disabled=field.schema is None,
        error=field.error,
    )


class SettingsForm:
    """Settings form for a single effect."""

    def __init__(self) -> None:
        self._memo = FieldMemo()

    def title(self, effect: EffectDescriptor) -> str:
        return pretty_name(effect.name)

    def fields(self, effect: EffectDescriptor) -> list[FieldDescriptor]:
        return self._memo(effect.config, effect.schema)

    def rows(self, effect: EffectDescriptor) -> list[FieldRow]:
        return [row_for(f) for f in self.fields(effect)]

    def edit(
        self, effect: EffectDescriptor, name: str, control: Control
    ) -> dict[str, Any] | None:
        """Return the new config for an edit of field *name*.

        ``None`` is returned for fields the form does not offer, including
        disabled fields whose schema is unusable.
        """
        for field in self.fields(effect):
            if field.name != name:
                continue
            if field.schema is None:
                return None
            return apply_patch(effect.config, name, parse_input(field.schema, control))
        return None


__all__ = ["FieldMemo", "FieldRow", "SettingsForm", "row_for"]
