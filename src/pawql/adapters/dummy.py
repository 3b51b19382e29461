"""Adapter that records statements instead of executing them."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from pawql.core.adapter import DatabaseAdapter
from pawql.core.types import QueryResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class LoggedQuery:
    """A statement seen by a DummyAdapter."""

    sql: str
    params: list[Any] = field(default_factory=list)


class DummyAdapter(DatabaseAdapter):
    """Records every statement and returns no rows.

    Transaction markers (BEGIN, COMMIT, ROLLBACK) are recorded in the same log,
    and adapters handed to transaction callbacks share it, so one list shows
    everything in order.
    """

    def __init__(self, logs: list[LoggedQuery] | None = None) -> None:
        """Initialize the adapter.

        Args:
            logs: Existing log list to append to (shared with the parent adapter
                inside transactions)
        """
        self._logs: list[LoggedQuery] = logs if logs is not None else []
        self._in_transaction = False

    @property
    def logs(self) -> list[LoggedQuery]:
        """Get the recorded statements."""
        return self._logs

    @property
    def statements(self) -> list[str]:
        """Get the recorded SQL texts."""
        return [entry.sql for entry in self._logs]

    def query(self, sql: str, parameters: Sequence[Any] | None = None) -> QueryResult:
        params = list(parameters or [])
        logger.debug(f"[DummyAdapter] SQL: {sql} Params: {params}")
        self._logs.append(LoggedQuery(sql, params))
        return QueryResult(rows=[], row_count=0)

    def transaction(self, callback: Callable[[DatabaseAdapter], T]) -> T:
        if self._in_transaction:
            logger.debug("[DummyAdapter] nested transaction, reusing current scope")
            return callback(self)

        self._logs.append(LoggedQuery("BEGIN"))
        scoped = DummyAdapter(self._logs)
        scoped._in_transaction = True
        try:
            result = callback(scoped)
        except Exception:
            self._logs.append(LoggedQuery("ROLLBACK"))
            logger.debug("[DummyAdapter] transaction rollback")
            raise
        self._logs.append(LoggedQuery("COMMIT"))
        logger.debug("[DummyAdapter] transaction commit")
        return result

    def close(self) -> None:
        logger.debug("[DummyAdapter] closed")
