"""Main PawQL database handle."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from pawql.adapters.sqlalchemy import SQLAlchemyAdapter
from pawql.core.connection import get_database_url
from pawql.query.builder import QueryBuilder
from pawql.schema.ddl import compile_create_table
from pawql.schema.registry import SchemaRegistry

if TYPE_CHECKING:
    from sqlalchemy.engine.url import URL

    from pawql.core.adapter import DatabaseAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")

SchemaInput = Mapping[str, Mapping[str, Any]] | SchemaRegistry


class Database:
    """Entry point tying a schema to an adapter.

    Hands out query builders for declared tables, creates the tables, and
    scopes work to transactions.
    """

    def __init__(
        self,
        schema: SchemaInput,
        adapter: DatabaseAdapter,
        *,
        quote_identifiers: bool = True,
    ) -> None:
        """Initialize the database handle.

        Args:
            schema: Table name to column mapping, or a prepared SchemaRegistry
            adapter: Adapter that executes statements
            quote_identifiers: Whether identifiers are double-quoted in SQL

        Raises:
            UnsupportedColumnTypeError: If the schema declares an unknown column type
        """
        self._schema = schema if isinstance(schema, SchemaRegistry) else SchemaRegistry(schema)
        self._adapter = adapter
        self._quote_identifiers = quote_identifiers

    @classmethod
    def from_url(
        cls,
        schema: SchemaInput,
        url: str | URL | None = None,
        *,
        echo: bool = False,
        quote_identifiers: bool = True,
    ) -> Database:
        """Create a handle backed by a SQLAlchemy engine.

        Args:
            schema: Table name to column mapping, or a SchemaRegistry
            url: Database URL; falls back to PAWQL_DATABASE_URL, then a local SQLite file
            echo: Whether to echo SQL statements
            quote_identifiers: Whether identifiers are double-quoted in SQL
        """
        adapter = SQLAlchemyAdapter(get_database_url(url), echo=echo)
        return cls(schema, adapter, quote_identifiers=quote_identifiers)

    @property
    def schema(self) -> SchemaRegistry:
        """Get the schema registry."""
        return self._schema

    @property
    def adapter(self) -> DatabaseAdapter:
        """Get the adapter."""
        return self._adapter

    def query(self, table: str) -> QueryBuilder:
        """Start a statement on a declared table.

        Raises:
            TableNotFoundError: If the table is not in the schema
        """
        self._schema.get_table(table)
        return QueryBuilder(table, self._adapter, quote_identifiers=self._quote_identifiers)

    def create_table_sql(self, table: str) -> str:
        """Get the CREATE TABLE statement for a declared table."""
        return compile_create_table(
            table, self._schema.get_table(table), quote_identifiers=self._quote_identifiers
        )

    def create_tables(self) -> None:
        """Create every declared table that does not exist yet, in declaration order."""
        for table in self._schema.tables:
            sql = self.create_table_sql(table)
            logger.debug(f"DDL: {sql}")
            self._adapter.query(sql, [])
            logger.info(f"Ensured table {table}")

    def transaction(self, callback: Callable[[Database], T]) -> T:
        """Run a callback inside a transaction.

        The callback gets a Database bound to the transaction; statements made
        through it commit together, or roll back together if the callback raises.

        Example:
            def transfer(trx: Database) -> None:
                trx.query("accounts").update({"balance": 50}).where({"id": 1}).execute()
                trx.query("accounts").update({"balance": 150}).where({"id": 2}).execute()

            db.transaction(transfer)
        """
        return self._adapter.transaction(
            lambda scoped: callback(
                Database(self._schema, scoped, quote_identifiers=self._quote_identifiers)
            )
        )

    def close(self) -> None:
        """Close the adapter."""
        self._adapter.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()


def create_db(
    schema: SchemaInput, adapter: DatabaseAdapter, *, quote_identifiers: bool = True
) -> Database:
    """Create a Database handle for a schema and adapter."""
    return Database(schema, adapter, quote_identifiers=quote_identifiers)
