"""Statement building and SQL compilation."""

from pawql.query.builder import QueryBuilder
from pawql.query.compiler import compile_statement, quote_identifier

__all__ = ["QueryBuilder", "compile_statement", "quote_identifier"]
