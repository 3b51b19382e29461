"""Adapter interface between compiled statements and a database.

PawQL never talks to a driver directly; it hands ``(sql, parameters)`` to a
DatabaseAdapter. SQL uses ``$1, $2, ...`` positional placeholders.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from pawql.core.types import QueryResult

T = TypeVar("T")


class DatabaseAdapter(ABC):
    """Executes compiled SQL and manages transactions."""

    @abstractmethod
    def query(self, sql: str, parameters: Sequence[Any] | None = None) -> QueryResult:
        """Execute a SQL statement.

        Args:
            sql: SQL text with ``$n`` placeholders
            parameters: Values for the placeholders, in order

        Returns:
            QueryResult with the returned rows and affected row count
        """

    @abstractmethod
    def transaction(self, callback: Callable[[DatabaseAdapter], T]) -> T:
        """Run a callback inside a transaction.

        The callback receives an adapter bound to the transaction's connection.
        The transaction commits when the callback returns and rolls back when
        it raises; the exception is re-raised unchanged. Calling transaction()
        on an adapter that is already inside one reuses the same connection
        without a savepoint.

        Returns:
            Whatever the callback returns
        """

    @abstractmethod
    def close(self) -> None:
        """Release the adapter's resources."""
