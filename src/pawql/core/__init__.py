"""Core components for PawQL."""

from pawql.core.adapter import DatabaseAdapter
from pawql.core.connection import DatabaseConnection, get_database_url
from pawql.core.types import (
    CompiledQuery,
    Connective,
    FilterClause,
    FilterOperator,
    JoinClause,
    JoinKind,
    Operation,
    QueryResult,
    StatementState,
)
from pawql.core.database import Database, create_db

__all__ = [
    "Database",
    "create_db",
    "DatabaseAdapter",
    "DatabaseConnection",
    "get_database_url",
    "CompiledQuery",
    "Connective",
    "FilterClause",
    "FilterOperator",
    "JoinClause",
    "JoinKind",
    "Operation",
    "QueryResult",
    "StatementState",
]
