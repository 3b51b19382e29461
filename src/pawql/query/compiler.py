"""SQL compiler for PawQL statements.

Turns a StatementState into PostgreSQL text with ``$n`` placeholders and the
matching positional parameter list. Compilation is pure: the same state
always yields the same text and parameters, and nothing is returned unless
the whole statement compiles.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from typing import Any

from pawql.core.types import (
    CompiledQuery,
    FilterClause,
    FilterOperator,
    JoinClause,
    Operation,
    StatementState,
)
from pawql.exceptions import (
    EmptyPayloadError,
    InvalidFilterError,
    QueryBuildError,
    UnsupportedJoinError,
)

Quote = Callable[[str], str]

_MEMBERSHIP_OPERATORS = (FilterOperator.IN, FilterOperator.NOT_IN)
_NULL_OPERATORS = (FilterOperator.IS, FilterOperator.IS_NOT)


def quote_identifier(name: str, *, enabled: bool = True) -> str:
    """Double-quote an identifier for PostgreSQL.

    ``*``, expressions (anything with a space or parenthesis) and names that
    are already quoted pass through untouched. ``table.column`` is quoted per
    segment.

    Args:
        name: Identifier to quote
        enabled: When False the name is returned as is

    Returns:
        The quoted identifier
    """
    if not enabled or name == "*" or name.startswith('"') or any(c in name for c in " ()"):
        return name
    return ".".join(_quote_segment(segment) for segment in name.split("."))


def _quote_segment(segment: str) -> str:
    if segment == "*":
        return segment
    return '"' + segment.replace('"', '""') + '"'


class ParameterList:
    """Accumulates bound values in binding order.

    The placeholder index is global to the statement, so one instance is
    threaded through every clause of a single compilation.
    """

    def __init__(self) -> None:
        self.values: list[Any] = []

    def bind(self, value: Any) -> str:
        """Bind a value and return its placeholder."""
        self.values.append(value)
        return f"${len(self.values)}"


def compile_statement(state: StatementState, *, quote_identifiers: bool = True) -> CompiledQuery:
    """Compile a statement into SQL text and parameters.

    Args:
        state: Captured statement intent
        quote_identifiers: Whether identifiers are double-quoted

    Returns:
        CompiledQuery with the SQL text and positional parameters

    Raises:
        UnsupportedJoinError: If a non-SELECT statement carries joins
        EmptyPayloadError: If an INSERT/UPDATE has nothing to write
        QueryBuildError: If the payload shape does not fit the operation
    """
    if state.joins and state.operation != Operation.SELECT:
        raise UnsupportedJoinError(state.operation.value, state.table)

    quote = partial(quote_identifier, enabled=quote_identifiers)
    params = ParameterList()
    sql = _RENDERERS[state.operation](state, params, quote)
    return CompiledQuery(sql, params.values)


# === Clause rendering ===


def render_where(filters: tuple[FilterClause, ...], params: ParameterList, quote: Quote) -> str:
    """Render a WHERE clause, or an empty string when there are no filters.

    Clauses are chained left to right with their own connective and no
    parentheses, so ``a AND b OR c`` evaluates as SQL precedence dictates.
    """
    if not filters:
        return ""

    parts: list[str] = []
    for clause in filters:
        condition = _render_condition(clause, params, quote)
        parts.append(f"{clause.connective.value} {condition}" if parts else condition)
    return " WHERE " + " ".join(parts)


def _render_condition(clause: FilterClause, params: ParameterList, quote: Quote) -> str:
    column = quote(clause.column)
    operator = clause.operator

    if operator in _MEMBERSHIP_OPERATORS:
        if not isinstance(clause.value, (list, tuple)):
            raise InvalidFilterError(
                clause.column, f"{operator.value} needs a list of values, got {clause.value!r}"
            )
        if not clause.value:
            # Nothing is a member of the empty set; everything is outside it
            return "1=0" if operator == FilterOperator.IN else "1=1"
        placeholders = ", ".join(params.bind(value) for value in clause.value)
        return f"{column} {operator.value} ({placeholders})"

    if operator in _NULL_OPERATORS:
        return f"{column} {operator.value} {_inline_literal(clause.value)}"

    return f"{column} {operator.value} {params.bind(clause.value)}"


def _inline_literal(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


def render_joins(joins: tuple[JoinClause, ...], quote: Quote) -> str:
    """Render joins in declaration order."""
    return "".join(
        f" {join.kind.value} JOIN {quote(join.table)} "
        f"ON {quote(join.left_column)} {join.operator} {quote(join.right_column)}"
        for join in joins
    )


def _render_projection(state: StatementState, quote: Quote) -> str:
    if not state.projection:
        return "*"
    return ", ".join(quote(column) for column in state.projection)


def _render_returning(state: StatementState, quote: Quote) -> str:
    if not state.returning:
        return ""
    return f" RETURNING {_render_projection(state, quote)}"


# === Statement rendering ===


def _render_select(state: StatementState, params: ParameterList, quote: Quote) -> str:
    sql = f"SELECT {_render_projection(state, quote)} FROM {quote(state.table)}"
    sql += render_joins(state.joins, quote)
    sql += render_where(state.filters, params, quote)
    if state.limit is not None:
        sql += f" LIMIT {state.limit}"
    if state.offset is not None:
        sql += f" OFFSET {state.offset}"
    return sql


def _render_insert(state: StatementState, params: ParameterList, quote: Quote) -> str:
    if state.payload is None:
        raise EmptyPayloadError("INSERT", state.table, "no data provided")
    records = state.payload if isinstance(state.payload, list) else [state.payload]
    if not records:
        raise EmptyPayloadError("INSERT", state.table, "empty list of records")

    # The first record decides the column list for every row
    columns = list(records[0])
    if not columns:
        raise EmptyPayloadError("INSERT", state.table, "no columns to insert")

    rows: list[str] = []
    for index, record in enumerate(records):
        missing = [column for column in columns if column not in record]
        if missing:
            raise QueryBuildError(
                f"Record {index} for INSERT on '{state.table}' is missing column(s): "
                f"{', '.join(missing)}. All records must share the first record's keys.",
                {"table": state.table, "record_index": index, "missing_columns": missing},
            )
        rows.append("(" + ", ".join(params.bind(record[column]) for column in columns) + ")")

    column_list = ", ".join(quote(column) for column in columns)
    sql = f"INSERT INTO {quote(state.table)} ({column_list}) VALUES {', '.join(rows)}"
    return sql + _render_returning(state, quote)


def _render_update(state: StatementState, params: ParameterList, quote: Quote) -> str:
    if state.payload is None:
        raise EmptyPayloadError("UPDATE", state.table, "no data provided")
    if isinstance(state.payload, list):
        raise QueryBuildError(
            f"UPDATE on '{state.table}' takes a single record, not a list.",
            {"table": state.table},
        )
    if not state.payload:
        raise EmptyPayloadError("UPDATE", state.table, "no columns to update")

    assignments = ", ".join(
        f"{quote(column)} = {params.bind(value)}" for column, value in state.payload.items()
    )
    sql = f"UPDATE {quote(state.table)} SET {assignments}"
    sql += render_where(state.filters, params, quote)
    return sql + _render_returning(state, quote)


def _render_delete(state: StatementState, params: ParameterList, quote: Quote) -> str:
    sql = f"DELETE FROM {quote(state.table)}"
    sql += render_where(state.filters, params, quote)
    return sql + _render_returning(state, quote)


_RENDERERS: dict[Operation, Callable[[StatementState, ParameterList, Quote], str]] = {
    Operation.SELECT: _render_select,
    Operation.INSERT: _render_insert,
    Operation.UPDATE: _render_update,
    Operation.DELETE: _render_delete,
}
