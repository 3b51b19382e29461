"""Fluent statement builder for PawQL.

A QueryBuilder accumulates one statement's intent (table, operation,
projection, joins, filters, payload, pagination) and compiles it on demand:

    users = db.query("users")
    rows = (
        users.select("id", "name")
        .where({"status": {"in": ["active", "pending"]}, "deleted_at": None})
        .or_where({"role": "admin"})
        .limit(10)
        .execute()
    )

Every method mutates the builder and returns it, so calls chain. A builder
is not thread-safe; create one per statement.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pawql.core.types import (
    JOIN_OPERATORS,
    CompiledQuery,
    Connective,
    FilterClause,
    FilterOperator,
    JoinClause,
    JoinKind,
    Operation,
    StatementState,
)
from pawql.exceptions import InvalidFilterError, QueryBuildError
from pawql.query.compiler import compile_statement

if TYPE_CHECKING:
    from pawql.core.adapter import DatabaseAdapter

logger = logging.getLogger(__name__)

# Filter keys in the order they expand into clauses
FILTER_OPERATORS: tuple[tuple[str, FilterOperator], ...] = (
    ("in", FilterOperator.IN),
    ("not_in", FilterOperator.NOT_IN),
    ("like", FilterOperator.LIKE),
    ("ilike", FilterOperator.ILIKE),
    ("gt", FilterOperator.GT),
    ("lt", FilterOperator.LT),
    ("gte", FilterOperator.GTE),
    ("lte", FilterOperator.LTE),
    ("not", FilterOperator.NE),
)

FILTER_KEY_ALIASES = {"notIn": "not_in"}

_MEMBERSHIP_OPERATORS = (FilterOperator.IN, FilterOperator.NOT_IN)


class QueryBuilder:
    """Builds one SELECT, INSERT, UPDATE or DELETE statement against a table."""

    def __init__(
        self,
        table: str,
        adapter: DatabaseAdapter,
        *,
        quote_identifiers: bool = True,
    ) -> None:
        """Initialize the builder.

        Args:
            table: Target table name
            adapter: Adapter used by execute()
            quote_identifiers: Whether identifiers are double-quoted in SQL
        """
        self._table = table
        self._adapter = adapter
        self._quote_identifiers = quote_identifiers
        self._operation = Operation.SELECT
        self._projection: list[str] = []
        self._filters: list[FilterClause] = []
        self._joins: list[JoinClause] = []
        self._payload: dict[str, Any] | list[dict[str, Any]] | None = None
        self._limit: int | None = None
        self._offset: int | None = None
        self._returning = False

    @property
    def table(self) -> str:
        """Get the target table name."""
        return self._table

    @property
    def state(self) -> StatementState:
        """Immutable snapshot of the captured statement."""
        return StatementState(
            table=self._table,
            operation=self._operation,
            projection=tuple(self._projection),
            filters=tuple(self._filters),
            joins=tuple(self._joins),
            payload=self._payload,
            limit=self._limit,
            offset=self._offset,
            returning=self._returning,
        )

    # --- CRUD operations ---

    def select(self, *columns: str) -> QueryBuilder:
        """Set the columns to select (or return). No columns means ``*``."""
        self._projection = list(columns)
        return self

    def insert(self, data: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None) -> QueryBuilder:
        """Insert one record or a list of records.

        Every record must have the first record's keys; they define the column list.
        """
        self._operation = Operation.INSERT
        if data is None or isinstance(data, Mapping):
            self._payload = _to_record(data, 0)
        elif isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
            self._payload = [_to_record(record, index) for index, record in enumerate(data)]
        else:
            raise QueryBuildError(
                f"INSERT data must be a mapping or a list of mappings, got {type(data).__name__}",
                {"table": self._table},
            )
        self._returning = True
        return self

    def update(self, data: Mapping[str, Any] | None) -> QueryBuilder:
        """Update matching records with the given column values."""
        self._operation = Operation.UPDATE
        if data is not None and not isinstance(data, Mapping):
            raise QueryBuildError(
                f"UPDATE data must be a mapping, got {type(data).__name__}",
                {"table": self._table},
            )
        self._payload = _to_record(data, 0)
        self._returning = True
        return self

    def delete(self) -> QueryBuilder:
        """Delete matching records."""
        self._operation = Operation.DELETE
        self._returning = True
        return self

    # --- Joins ---

    def inner_join(self, table: str, left: str, operator: str, right: str) -> QueryBuilder:
        """Add an INNER JOIN."""
        return self._join(JoinKind.INNER, table, left, operator, right)

    def left_join(self, table: str, left: str, operator: str, right: str) -> QueryBuilder:
        """Add a LEFT JOIN."""
        return self._join(JoinKind.LEFT, table, left, operator, right)

    def right_join(self, table: str, left: str, operator: str, right: str) -> QueryBuilder:
        """Add a RIGHT JOIN."""
        return self._join(JoinKind.RIGHT, table, left, operator, right)

    def full_join(self, table: str, left: str, operator: str, right: str) -> QueryBuilder:
        """Add a FULL JOIN."""
        return self._join(JoinKind.FULL, table, left, operator, right)

    def _join(
        self, kind: JoinKind, table: str, left: str, operator: str, right: str
    ) -> QueryBuilder:
        if operator not in JOIN_OPERATORS:
            raise InvalidFilterError(
                left,
                f"join operator {operator!r} is not supported. "
                f"Use one of: {', '.join(sorted(JOIN_OPERATORS))}",
            )
        self._joins.append(
            JoinClause(
                kind=kind, table=table, left_column=left, operator=operator, right_column=right
            )
        )
        return self

    # --- Filters ---

    def where(
        self, conditions: Mapping[str, Any] | None = None, /, **columns: Any
    ) -> QueryBuilder:
        """Add conditions joined to the previous ones with AND.

        Each entry maps a column to a value:

        - ``None`` renders ``column IS NULL``
        - a dict of operators (``in``, ``not_in``, ``like``, ``ilike``, ``gt``,
          ``lt``, ``gte``, ``lte``, ``not``) adds one clause per operator
        - anything else renders ``column = $n``

        ``in`` and ``not_in`` take a list or tuple; sets are rejected because
        their iteration order, and so the parameter order, is not stable.
        Unknown operator keys are skipped, but a dict with no recognized key
        raises InvalidFilterError instead of dropping the condition.

        Conditions are never grouped: ``where`` and ``or_where`` chain left to
        right without parentheses.
        """
        self._add_conditions(Connective.AND, conditions, columns)
        return self

    def or_where(
        self, conditions: Mapping[str, Any] | None = None, /, **columns: Any
    ) -> QueryBuilder:
        """Add conditions joined to the previous ones with OR."""
        self._add_conditions(Connective.OR, conditions, columns)
        return self

    def _add_conditions(
        self,
        connective: Connective,
        conditions: Mapping[str, Any] | None,
        columns: dict[str, Any],
    ) -> None:
        merged = {**(conditions or {}), **columns}
        for column, value in merged.items():
            if value is None:
                self._filters.append(
                    FilterClause(
                        connective=connective, column=column, operator=FilterOperator.IS
                    )
                )
            elif isinstance(value, Mapping):
                self._filters.extend(_expand_operators(connective, column, value))
            else:
                self._filters.append(
                    FilterClause(connective=connective, column=column, value=value)
                )

    # --- Pagination ---

    def limit(self, limit: int) -> QueryBuilder:
        """Limit the number of rows (SELECT only)."""
        self._limit = self._check_count("limit", limit)
        return self

    def offset(self, offset: int) -> QueryBuilder:
        """Skip rows before returning results (SELECT only)."""
        self._offset = self._check_count("offset", offset)
        return self

    def _check_count(self, name: str, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise QueryBuildError(
                f"{name} must be a non-negative integer, got {value!r}",
                {"table": self._table, name: repr(value)},
            )
        return value

    # --- Compilation and execution ---

    def to_sql(self) -> CompiledQuery:
        """Compile the statement without executing it.

        Returns:
            CompiledQuery(sql, parameters)

        Raises:
            QueryBuildError: If the statement is incomplete or inconsistent
        """
        return compile_statement(self.state, quote_identifiers=self._quote_identifiers)

    def execute(self) -> list[dict[str, Any]]:
        """Compile and run the statement.

        Returns:
            Rows returned by the database (written rows for INSERT/UPDATE/DELETE)
        """
        sql, parameters = self.to_sql()
        logger.debug(f"Executing {self._operation.value} on {self._table}: {sql}")
        return self._adapter.query(sql, parameters).rows

    def first(self) -> dict[str, Any] | None:
        """Execute and return the first row, or None when nothing matched."""
        rows = self.execute()
        return rows[0] if rows else None

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.execute())


def _to_record(data: Any, index: int) -> dict[str, Any] | None:
    if data is None:
        return None
    if not isinstance(data, Mapping):
        raise QueryBuildError(
            f"Record {index} must be a mapping of column to value, got {type(data).__name__}",
            {"record_index": index},
        )
    return dict(data)


def _expand_operators(
    connective: Connective, column: str, operators: Mapping[str, Any]
) -> list[FilterClause]:
    """Expand an operator dict into clauses in FILTER_OPERATORS order.

    Unknown keys are ignored, but at least one key must be recognized: an
    operator dict that would expand to nothing raises rather than leaving the
    statement unfiltered.
    """
    given = {FILTER_KEY_ALIASES.get(key, key): value for key, value in operators.items()}

    clauses: list[FilterClause] = []
    for key, operator in FILTER_OPERATORS:
        if key not in given:
            continue
        value = given[key]
        if operator in _MEMBERSHIP_OPERATORS:
            if not isinstance(value, (list, tuple)):
                raise InvalidFilterError(
                    column, f"'{key}' needs a list or tuple of values, got {value!r}"
                )
            value = tuple(value)
        elif operator == FilterOperator.NE and value is None:
            operator = FilterOperator.IS_NOT
        clauses.append(
            FilterClause(connective=connective, column=column, operator=operator, value=value)
        )

    if not clauses:
        raise InvalidFilterError(
            column, f"no recognized operator in {sorted(operators)!r}"
        )
    return clauses
