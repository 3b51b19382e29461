"""Custom exceptions for PawQL.

Build-time errors are raised before any SQL reaches the database:
- Messages say what went wrong AND how to fix it
- Context carries the offending table, column or option for programmatic use

Errors raised by the database driver are never wrapped; they propagate unchanged.
"""

from __future__ import annotations

from typing import Any


class PawQLError(Exception):
    """Base exception for all PawQL errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConnectionError(PawQLError):
    """Failed to connect to the database."""

    pass


# === Build-time errors ===


class QueryBuildError(PawQLError):
    """A statement cannot be compiled from the captured builder state."""

    pass


class EmptyPayloadError(QueryBuildError):
    """INSERT or UPDATE has no data to write."""

    def __init__(self, operation: str, table: str, reason: str) -> None:
        message = f"Cannot build {operation} on '{table}': {reason}"
        super().__init__(message, {"operation": operation, "table": table, "reason": reason})
        self.operation = operation
        self.table = table
        self.reason = reason


class UnsupportedJoinError(QueryBuildError):
    """Joins were added to a statement that cannot carry them."""

    def __init__(self, operation: str, table: str) -> None:
        message = (
            f"{operation} on '{table}' cannot have joins. "
            "Joins are only supported on SELECT statements."
        )
        super().__init__(message, {"operation": operation, "table": table})
        self.operation = operation
        self.table = table


class InvalidFilterError(QueryBuildError):
    """A filter or join condition has an unsupported shape."""

    VALID_KEYS = ["in", "not_in", "like", "ilike", "gt", "lt", "gte", "lte", "not"]

    def __init__(self, column: str, reason: str) -> None:
        message = f"Invalid condition on '{column}': {reason}"
        super().__init__(
            message, {"column": column, "reason": reason, "valid_keys": self.VALID_KEYS}
        )
        self.column = column
        self.reason = reason


# === Schema errors ===


class SchemaError(PawQLError):
    """The declared schema is invalid."""

    pass


class UnsupportedColumnTypeError(SchemaError):
    """A column descriptor is not one of the supported kinds."""

    VALID_TYPES = ["number", "string", "boolean", "date", "json", "uuid", "enum", "array"]

    def __init__(self, column_type: Any, column_name: str | None = None) -> None:
        where = f" for column '{column_name}'" if column_name else ""
        message = (
            f"Unsupported column type {column_type!r}{where}. "
            f"Valid types: {', '.join(self.VALID_TYPES)}"
        )
        super().__init__(
            message,
            {
                "column_type": repr(column_type),
                "column_name": column_name,
                "valid_types": self.VALID_TYPES,
            },
        )
        self.column_type = column_type
        self.column_name = column_name


class TableNotFoundError(SchemaError):
    """Table is not declared in the schema."""

    def __init__(self, table_name: str, available_tables: list[str] | None = None) -> None:
        available = available_tables or []
        if available:
            message = f"Table '{table_name}' not found. Available tables: {', '.join(available)}"
        else:
            message = f"Table '{table_name}' not found. No tables are declared."

        super().__init__(message, {"table_name": table_name, "available_tables": available})
        self.table_name = table_name
        self.available_tables = available
