"""Column type descriptors for declaring schemas at runtime.

Descriptors are immutable pydantic models discriminated by ``brand``:

    from pawql import array_type, enum_type, json, number, string, uuid

    schema = {
        "users": {
            "id": {"type": uuid, "primary_key": True},
            "name": string,
            "age": {"type": number, "nullable": True},
            "role": enum_type("admin", "user", "guest"),
            "tags": array_type(string),
            "metadata": json(),
        }
    }

The builtins ``int``, ``str``, ``bool`` and ``datetime`` may be used in place
of ``number``, ``string``, ``boolean`` and ``date``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, field_validator, model_validator

from pawql.core.compat import StrEnum
from pawql.exceptions import UnsupportedColumnTypeError


class PrimitiveKind(StrEnum):
    """Scalar column domains."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    DATE = "date"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid primitive kinds."""
        return [k.value for k in cls]


class ColumnType(BaseModel):
    """Base class for column type descriptors."""

    model_config = {"frozen": True}


class PrimitiveType(ColumnType):
    """Number, string, boolean or date column."""

    brand: Literal["primitive"] = "primitive"
    kind: PrimitiveKind


class JsonType(ColumnType):
    """JSON document column (JSONB)."""

    brand: Literal["json"] = "json"


class UuidType(ColumnType):
    """UUID column."""

    brand: Literal["uuid"] = "uuid"


class EnumType(ColumnType):
    """Text column restricted to a fixed set of values."""

    brand: Literal["enum"] = "enum"
    values: tuple[str, ...]

    @field_validator("values")
    @classmethod
    def _require_values(cls, values: tuple[str, ...]) -> tuple[str, ...]:
        if not values:
            raise ValueError("enum type needs at least one value")
        return values


class ArrayType(ColumnType):
    """Array of a primitive item type."""

    brand: Literal["array"] = "array"
    item_type: PrimitiveType

    @field_validator("item_type", mode="before")
    @classmethod
    def _coerce_item_type(cls, value: Any) -> Any:
        return _coerce_builtin(value)


number = PrimitiveType(kind=PrimitiveKind.NUMBER)
string = PrimitiveType(kind=PrimitiveKind.STRING)
boolean = PrimitiveType(kind=PrimitiveKind.BOOLEAN)
date = PrimitiveType(kind=PrimitiveKind.DATE)
uuid = UuidType()

_BUILTIN_PRIMITIVES: dict[Any, PrimitiveType] = {
    int: number,
    str: string,
    bool: boolean,
    datetime: date,
}


def _coerce_builtin(value: Any) -> Any:
    """Map a builtin type to its primitive descriptor, leaving anything else as is."""
    if isinstance(value, type):
        return _BUILTIN_PRIMITIVES.get(value, value)
    return value


def json() -> JsonType:
    """Create a JSON column type."""
    return JsonType()


def enum_type(*values: str) -> EnumType:
    """Create an enum column type with the allowed values."""
    return EnumType(values=values)


def array_type(item_type: PrimitiveType | type) -> ArrayType:
    """Create an array column type, e.g. ``array_type(string)`` for ``TEXT[]``."""
    resolved = resolve_column_type(item_type)
    if not isinstance(resolved, PrimitiveType):
        raise UnsupportedColumnTypeError(item_type)
    return ArrayType(item_type=resolved)


def resolve_column_type(value: Any, column_name: str | None = None) -> ColumnType:
    """Turn a descriptor or builtin type into a ColumnType.

    Raises:
        UnsupportedColumnTypeError: If the value is not a known descriptor
    """
    resolved = _coerce_builtin(value)
    if not isinstance(resolved, ColumnType):
        raise UnsupportedColumnTypeError(value, column_name)
    return resolved


class ColumnDefinition(BaseModel):
    """A column type decorated with nullability, primary key and default.

    ``default`` is only rendered when it was given explicitly, so
    ``default=None`` produces ``DEFAULT NULL`` while omitting it produces nothing.
    """

    type: ColumnType
    name: str | None = None
    nullable: bool = False
    primary_key: bool = False
    default: Any = None

    model_config = {"frozen": True}

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        return _coerce_builtin(value)

    @model_validator(mode="after")
    def _check_enum_default(self) -> ColumnDefinition:
        if (
            self.has_default
            and isinstance(self.type, EnumType)
            and self.default is not None
            and self.default not in self.type.values
        ):
            raise ValueError(
                f"default {self.default!r} is not one of {', '.join(self.type.values)}"
            )
        return self

    @property
    def has_default(self) -> bool:
        """Whether a default was given explicitly."""
        return "default" in self.model_fields_set


def to_column_definition(value: Any, column_name: str | None = None) -> ColumnDefinition:
    """Normalize a schema entry into a ColumnDefinition.

    Accepts a ColumnDefinition, a bare descriptor or builtin type, or a dict
    with a ``type`` key.

    Raises:
        UnsupportedColumnTypeError: If the entry's type is not supported
    """
    if isinstance(value, ColumnDefinition):
        return value
    if isinstance(value, dict):
        if "type" not in value:
            raise UnsupportedColumnTypeError(value, column_name)
        options = dict(value)
        options["type"] = resolve_column_type(options["type"], column_name)
        return ColumnDefinition(**options)
    return ColumnDefinition(type=resolve_column_type(value, column_name))
