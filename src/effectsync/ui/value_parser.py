from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from ..schema import NUMERIC_TYPES, PropertySchema

DISPLAY_PRECISION = 1000

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})


class InputKind(str, Enum):
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    TEXT = "text"


class Control(Protocol):
    """The parts of an editor input element the parser reads."""

    value: str
    value_as_number: float
    checked: bool


@dataclass(frozen=True)
class InputControl:
    """Plain snapshot of an input element.

    ``value_as_number`` is ``nan`` when the text is not a number, like a
    browser's number input.
    """

    value: str = ""
    value_as_number: float = math.nan
    checked: bool = False

    @classmethod
    def from_text(cls, text: str) -> InputControl:
        """Build a control from raw text, e.g. a command line argument.

        ``1``/``0``, ``yes``/``no`` and ``on``/``off`` are accepted for
        booleans in addition to ``true``/``false``.
        """
        stripped = text.strip()
        try:
            number = float(stripped)
        except ValueError:
            number = math.nan
        return cls(value=text, value_as_number=number, checked=stripped.lower() in _TRUE_WORDS)


def _type_of(schema: PropertySchema | None) -> str | None:
    return None if schema is None else schema.type


def input_kind(schema: PropertySchema | None) -> InputKind:
    """Return the editing affordance for a field declared as *schema*."""
    type_name = _type_of(schema)
    if type_name in NUMERIC_TYPES:
        return InputKind.NUMERIC
    if type_name == "boolean":
        return InputKind.BOOLEAN
    return InputKind.TEXT


def parse_input(schema: PropertySchema | None, control: Control) -> Any:
    """Read the typed value out of *control* for a field declared as *schema*.

    Numeric fields read the control's numeric value rather than re-parsing
    its text.  Integer fields come back as :class:`int` when the number is
    finite and integral.
    """
    kind = input_kind(schema)
    if kind is InputKind.NUMERIC:
        number = control.value_as_number
        if _type_of(schema) == "integer" and math.isfinite(number) and float(number).is_integer():
            return int(number)
        return number
    if kind is InputKind.BOOLEAN:
        return bool(control.checked)
    return control.value


def display_value(schema: PropertySchema | None, value: Any) -> Any:
    """Return *value* as it should be shown; the stored value is untouched.

    Numbers are rounded half up to three decimals.
    """
    if input_kind(schema) is not InputKind.NUMERIC:
        return value
    if isinstance(value, (bool, int)) or not isinstance(value, float):
        return value
    scaled = value * DISPLAY_PRECISION + 0.5
    # huge finite values overflow when scaled
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled) / DISPLAY_PRECISION


__all__ = [
    "Control",
    "InputControl",
    "InputKind",
    "display_value",
    "input_kind",
    "parse_input",
]
