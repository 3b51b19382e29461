"""Read-only registry of declared tables and their columns."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from pawql.exceptions import TableNotFoundError
from pawql.schema.columns import ColumnDefinition, to_column_definition

TableColumns = Mapping[str, ColumnDefinition]


class SchemaRegistry:
    """Stores, per table, the ordered column definitions of a database schema.

    Every entry is normalized to a ColumnDefinition when the registry is built,
    so an unsupported descriptor fails at startup rather than at DDL time.
    The registry is never mutated afterwards and is shared by every builder.
    """

    def __init__(self, schema: Mapping[str, Mapping[str, Any]]) -> None:
        """Initialize the registry.

        Args:
            schema: Mapping of table name to an ordered mapping of column
                name to descriptor, builtin type, dict or ColumnDefinition

        Raises:
            UnsupportedColumnTypeError: If any column type is not supported
        """
        tables: dict[str, TableColumns] = {}
        for table_name, columns in schema.items():
            tables[table_name] = MappingProxyType(
                {
                    column_name: to_column_definition(column, column_name)
                    for column_name, column in columns.items()
                }
            )
        self._tables: Mapping[str, TableColumns] = MappingProxyType(tables)

    @property
    def tables(self) -> list[str]:
        """Declared table names in declaration order."""
        return list(self._tables)

    def has_table(self, name: str) -> bool:
        """Check if a table is declared."""
        return name in self._tables

    def get_table(self, name: str) -> TableColumns:
        """Get a table's column definitions.

        Raises:
            TableNotFoundError: If the table is not declared
        """
        try:
            return self._tables[name]
        except KeyError:
            raise TableNotFoundError(name, self.tables) from None

    def __getitem__(self, name: str) -> TableColumns:
        return self.get_table(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        return f"SchemaRegistry(tables={self.tables!r})"
