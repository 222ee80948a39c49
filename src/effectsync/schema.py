"""Turn an effect's JSON-Schema and its current values into editable fields.

Only flat objects of scalar properties are understood.  The raw schema is
inspected once, in :func:`property_schema`; everything downstream works with
either a :class:`PropertySchema` or ``None`` ("unusable").  Nothing in this
module raises for malformed input.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import SchemaMismatchError

NUMERIC_TYPES = frozenset({"number", "integer"})
SCALAR_TYPES = NUMERIC_TYPES | {"string", "boolean"}


@dataclass(frozen=True)
class PropertySchema:
    """Concrete schema of a single property.

    ``type`` is only set when the schema declares a single string type;
    union types (``["number", "null"]``) and missing types resolve to
    ``None`` and are edited as text.
    """

    type: str | None
    title: str | None = None
    description: str | None = None
    default: Any = None
    raw: Mapping[str, Any] | None = None

    @property
    def is_numeric(self) -> bool:
        return self.type in NUMERIC_TYPES

    @property
    def is_scalar(self) -> bool:
        return self.type in SCALAR_TYPES


@dataclass(frozen=True)
class FieldDescriptor:
    """One editable row: a config key, its value and its resolved schema."""

    name: str
    value: Any
    schema: PropertySchema | None

    @property
    def is_valid(self) -> bool:
        return self.schema is not None

    @property
    def error(self) -> str | None:
        if self.schema is None:
            return str(SchemaMismatchError(self.name))
        return None


def _opt_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


def property_schema(schema: object, key: str) -> PropertySchema | None:
    """Return the concrete schema of property *key* or ``None``.

    ``None`` covers a missing ``properties`` table, a missing entry and a
    boolean schema (``true``/``false`` carry no type information).
    """
    if not isinstance(schema, Mapping):
        return None
    properties = schema.get("properties")
    if not isinstance(properties, Mapping):
        return None
    prop = properties.get(key)
    if not isinstance(prop, Mapping):
        return None
    return PropertySchema(
        type=_opt_str(prop.get("type")),
        title=_opt_str(prop.get("title")),
        description=_opt_str(prop.get("description")),
        default=prop.get("default"),
        raw=prop,
    )


def is_object_schema(schema: object) -> bool:
    return isinstance(schema, Mapping) and schema.get("type") == "object"


def derive_fields(config: Mapping[str, Any], schema: object) -> list[FieldDescriptor]:
    """Return one :class:`FieldDescriptor` per key of *config*.

    Keys are taken from the config, not from the schema, so every value that
    is currently set gets a row even if the schema disagrees.  Order follows
    the config's insertion order.  A schema that is not an object schema has
    nothing to edit and yields an empty list.
    """
    if not is_object_schema(schema) or not isinstance(config, Mapping):
        return []
    return [
        FieldDescriptor(name=key, value=value, schema=property_schema(schema, key))
        for key, value in config.items()
    ]


__all__ = [
    "FieldDescriptor",
    "NUMERIC_TYPES",
    "PropertySchema",
    "derive_fields",
    "is_object_schema",
    "property_schema",
]
