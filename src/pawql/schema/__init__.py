"""Schema declaration and DDL generation."""

from pawql.schema.columns import ColumnDefinition, ColumnType
from pawql.schema.ddl import compile_create_table, compile_schema
from pawql.schema.registry import SchemaRegistry

__all__ = [
    "ColumnDefinition",
    "ColumnType",
    "SchemaRegistry",
    "compile_create_table",
    "compile_schema",
]
