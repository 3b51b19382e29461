"""DDL generation for declared tables.

Maps column descriptors to PostgreSQL column types and renders
``CREATE TABLE IF NOT EXISTS`` statements in schema declaration order.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any
from uuid import UUID

from pawql.exceptions import SchemaError, UnsupportedColumnTypeError
from pawql.query.compiler import quote_identifier
from pawql.schema.columns import (
    ArrayType,
    ColumnDefinition,
    ColumnType,
    EnumType,
    JsonType,
    PrimitiveKind,
    PrimitiveType,
    UuidType,
)
from pawql.schema.registry import SchemaRegistry

# Mapping from primitive kinds to PostgreSQL column types
PRIMITIVE_TYPE_MAP: dict[PrimitiveKind, str] = {
    PrimitiveKind.NUMBER: "INTEGER",
    PrimitiveKind.STRING: "TEXT",
    PrimitiveKind.BOOLEAN: "BOOLEAN",
    PrimitiveKind.DATE: "TIMESTAMP",
}


def column_type_token(column_type: ColumnType, column_name: str | None = None) -> str:
    """Get the PostgreSQL type for a column descriptor.

    Raises:
        UnsupportedColumnTypeError: If the descriptor has no mapping
    """
    if isinstance(column_type, PrimitiveType):
        return PRIMITIVE_TYPE_MAP[column_type.kind]
    if isinstance(column_type, JsonType):
        return "JSONB"
    if isinstance(column_type, UuidType):
        return "UUID"
    if isinstance(column_type, EnumType):
        return "TEXT"
    if isinstance(column_type, ArrayType):
        return f"{column_type_token(column_type.item_type, column_name)}[]"
    raise UnsupportedColumnTypeError(column_type, column_name)


def quote_literal(value: str) -> str:
    """Single-quote a string literal, doubling embedded quotes."""
    return "'" + value.replace("'", "''") + "'"


def render_literal(value: Any, column_type: ColumnType, column_name: str | None = None) -> str:
    """Render a default value as a SQL literal in the column's domain.

    Raises:
        SchemaError: If the value cannot be expressed for this column
    """
    if value is None:
        return "NULL"
    if isinstance(column_type, JsonType):
        return quote_literal(json.dumps(value))
    if isinstance(column_type, ArrayType):
        if not isinstance(value, (list, tuple)):
            raise SchemaError(
                f"Default for array column '{column_name}' must be a list, got {value!r}",
                {"column_name": column_name, "default": repr(value)},
            )
        if not value:
            return "'{}'"
        items = ", ".join(render_literal(item, column_type.item_type, column_name) for item in value)
        return f"ARRAY[{items}]"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return quote_literal(value.isoformat())
    if isinstance(value, (str, UUID)):
        return quote_literal(str(value))
    if isinstance(value, (dict, list)):
        return quote_literal(json.dumps(value))
    raise SchemaError(
        f"Cannot render default {value!r} for column '{column_name}'",
        {"column_name": column_name, "default": repr(value)},
    )


def compile_column(
    key: str, definition: ColumnDefinition, *, quote_identifiers: bool = True
) -> str:
    """Render one column definition.

    Args:
        key: Column key in the table schema (used when no name override is set)
        definition: The column definition
        quote_identifiers: Whether to double-quote the column name

    Returns:
        Column definition SQL, e.g. ``"role" TEXT NOT NULL CHECK ("role" IN ('a', 'b'))``
    """
    column_name = definition.name or key
    name = quote_identifier(column_name, enabled=quote_identifiers)
    column_type = definition.type

    parts = [name, column_type_token(column_type, column_name)]
    if not definition.nullable:
        parts.append("NOT NULL")
    if definition.primary_key:
        parts.append("PRIMARY KEY")
    if definition.has_default:
        parts.append(f"DEFAULT {render_literal(definition.default, column_type, column_name)}")
    if isinstance(column_type, EnumType):
        allowed = ", ".join(quote_literal(value) for value in column_type.values)
        parts.append(f"CHECK ({name} IN ({allowed}))")
    return " ".join(parts)


def compile_create_table(
    table: str, columns: Mapping[str, ColumnDefinition], *, quote_identifiers: bool = True
) -> str:
    """Render a CREATE TABLE IF NOT EXISTS statement.

    Args:
        table: Table name
        columns: Ordered column definitions
        quote_identifiers: Whether to double-quote identifiers

    Returns:
        The DDL statement

    Raises:
        UnsupportedColumnTypeError: If a column type has no mapping
        SchemaError: If a default cannot be rendered
    """
    definitions = ", ".join(
        compile_column(key, definition, quote_identifiers=quote_identifiers)
        for key, definition in columns.items()
    )
    table_name = quote_identifier(table, enabled=quote_identifiers)
    return f"CREATE TABLE IF NOT EXISTS {table_name} ({definitions})"


def compile_schema(registry: SchemaRegistry, *, quote_identifiers: bool = True) -> list[str]:
    """Render one CREATE TABLE statement per declared table, in declaration order."""
    return [
        compile_create_table(table, registry.get_table(table), quote_identifiers=quote_identifiers)
        for table in registry.tables
    ]
