"""SQLAlchemy-backed adapter.

Runs compiled PawQL statements on any SQLAlchemy engine. The ``$n``
placeholders produced by the compiler are rewritten to SQLAlchemy named
binds, so the dialect's driver receives its own paramstyle.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import JSON, Connection, Engine, TextClause, bindparam, text
from sqlalchemy.dialects.postgresql import JSONB

from pawql.core.adapter import DatabaseAdapter
from pawql.core.connection import DatabaseConnection
from pawql.core.types import QueryResult

if TYPE_CHECKING:
    from sqlalchemy import CursorResult
    from sqlalchemy.engine.url import URL

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Double-quoted identifiers and single-quoted literals are matched whole and left alone
_PLACEHOLDER = re.compile(r"\"(?:[^\"]|\"\")*\"|'(?:[^']|'')*'|\$(\d+)")

# JSONB on PostgreSQL, SQLAlchemy's generic JSON elsewhere
_JSON_TYPE = JSON().with_variant(JSONB(), "postgresql")


def _is_json_value(value: Any) -> bool:
    if isinstance(value, dict):
        return True
    return isinstance(value, (list, tuple)) and any(isinstance(item, dict) for item in value)


def to_named_binds(sql: str, parameters: Sequence[Any]) -> tuple[TextClause, dict[str, Any]]:
    """Convert ``$n`` placeholders to ``:p<n>`` binds.

    Literal colons are escaped so SQLAlchemy does not read them as binds, and
    ``$n`` inside quoted identifiers or string literals is not rewritten.
    Dicts, and lists holding dicts, are bound as JSON so the driver receives
    serialized values.

    Args:
        sql: SQL text with ``$n`` placeholders
        parameters: Positional values

    Returns:
        TextClause and the matching bind dict
    """
    escaped = sql.replace(":", r"\:")
    bound = _PLACEHOLDER.sub(
        lambda match: f":p{match.group(1)}" if match.group(1) else match.group(0), escaped
    )
    values = {f"p{index}": value for index, value in enumerate(parameters, start=1)}
    clause = text(bound)
    json_binds = [
        bindparam(name, type_=_JSON_TYPE) for name, value in values.items() if _is_json_value(value)
    ]
    if json_binds:
        clause = clause.bindparams(*json_binds)
    return clause, values


class SQLAlchemyAdapter(DatabaseAdapter):
    """Executes statements through a SQLAlchemy engine or connection.

    Built from a URL, DatabaseConnection or Engine, every statement runs in
    its own short transaction on a pooled connection. Built from a
    Connection (as handed to transaction callbacks), statements run on that
    connection and commit with the surrounding transaction.
    """

    def __init__(
        self,
        source: str | URL | DatabaseConnection | Engine | Connection,
        *,
        echo: bool = False,
    ) -> None:
        """Initialize the adapter.

        Args:
            source: Database URL, DatabaseConnection, Engine, or a Connection
                already inside a transaction
            echo: Whether to echo SQL statements (only used with a URL)
        """
        self._database: DatabaseConnection | None = None
        self._engine: Engine | None = None
        self._connection: Connection | None = None

        if isinstance(source, Connection):
            self._connection = source
            self._engine = source.engine
        elif isinstance(source, Engine):
            self._engine = source
        elif isinstance(source, DatabaseConnection):
            self._database = source
        else:
            self._database = DatabaseConnection(source, echo=echo)

    @property
    def engine(self) -> Engine:
        """Get the underlying SQLAlchemy engine."""
        if self._engine is None:
            assert self._database is not None
            self._engine = self._database.engine
        return self._engine

    @property
    def in_transaction(self) -> bool:
        """Check if this adapter is bound to a transaction's connection."""
        return self._connection is not None

    def query(self, sql: str, parameters: Sequence[Any] | None = None) -> QueryResult:
        params = list(parameters or [])
        if self._connection is not None:
            return self._run(self._connection, sql, params)
        with self.engine.begin() as conn:
            return self._run(conn, sql, params)

    def _run(self, conn: Connection, sql: str, params: list[Any]) -> QueryResult:
        logger.debug(f"SQL: {sql} ({len(params)} parameters)")
        result: CursorResult[Any]
        if params:
            clause, binds = to_named_binds(sql, params)
            result = conn.execute(clause, binds)
        else:
            # Sent verbatim so '%' and ':' in literals reach the server untouched
            result = conn.exec_driver_sql(sql, execution_options={"no_parameters": True})

        if result.returns_rows:
            rows = [dict(row._mapping) for row in result]
            return QueryResult(rows=rows, row_count=len(rows))
        return QueryResult(rows=[], row_count=max(result.rowcount, 0))

    def transaction(self, callback: Callable[[DatabaseAdapter], T]) -> T:
        if self._connection is not None:
            # No savepoint: the nested callback shares the outer transaction
            logger.debug("Nested transaction, reusing the current connection")
            return callback(self)

        with self.engine.connect() as conn:
            trans = conn.begin()
            logger.debug("Transaction begin")
            try:
                result = callback(SQLAlchemyAdapter(conn))
            except Exception:
                trans.rollback()
                logger.warning("Transaction rolled back")
                raise
            trans.commit()
            logger.debug("Transaction commit")
            return result

    def close(self) -> None:
        if self._connection is not None:
            return
        if self._database is not None:
            self._database.close()
            self._engine = None
        elif self._engine is not None:
            self._engine.dispose()
