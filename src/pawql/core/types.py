"""Core types for PawQL.

Statement intent is captured in immutable pydantic models so a compiled
statement always reflects one consistent snapshot of a builder.
"""

from __future__ import annotations

from typing import Any, NamedTuple

from pydantic import BaseModel, Field

from pawql.core.compat import StrEnum


class Operation(StrEnum):
    """Statement kinds a builder can produce."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Connective(StrEnum):
    """Logical connective joining a filter clause to the previous one."""

    AND = "AND"
    OR = "OR"


class FilterOperator(StrEnum):
    """Comparison operators a filter clause can use."""

    EQ = "="
    NE = "!="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    LIKE = "LIKE"
    ILIKE = "ILIKE"
    IN = "IN"
    NOT_IN = "NOT IN"
    IS = "IS"
    IS_NOT = "IS NOT"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid operator values."""
        return [op.value for op in cls]


class JoinKind(StrEnum):
    """Supported join types."""

    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL = "FULL"


# Operators accepted in a join's ON condition
JOIN_OPERATORS = frozenset({"=", "!=", "<>", "<", ">", "<=", ">="})


class FilterClause(BaseModel):
    """One comparison plus its connective to the previous clause."""

    connective: Connective = Connective.AND
    column: str
    operator: FilterOperator = FilterOperator.EQ
    value: Any = None

    model_config = {"frozen": True}


class JoinClause(BaseModel):
    """A join against another table."""

    kind: JoinKind
    table: str
    left_column: str
    operator: str = "="
    right_column: str

    model_config = {"frozen": True}


class StatementState(BaseModel):
    """Snapshot of everything a builder has captured for one statement."""

    table: str
    operation: Operation = Operation.SELECT
    projection: tuple[str, ...] = ()
    filters: tuple[FilterClause, ...] = ()
    joins: tuple[JoinClause, ...] = ()
    payload: dict[str, Any] | list[dict[str, Any]] | None = None
    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)
    returning: bool = False

    model_config = {"frozen": True}


class CompiledQuery(NamedTuple):
    """SQL text plus positional parameters, ready for an adapter."""

    sql: str
    parameters: list[Any]


class QueryResult(BaseModel):
    """Rows returned by an adapter."""

    rows: list[dict[str, Any]] = Field(default_factory=list)
    row_count: int = 0
