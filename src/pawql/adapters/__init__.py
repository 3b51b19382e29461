"""Adapters that execute compiled statements."""

from pawql.adapters.dummy import DummyAdapter, LoggedQuery
from pawql.adapters.sqlalchemy import SQLAlchemyAdapter

__all__ = ["DummyAdapter", "LoggedQuery", "SQLAlchemyAdapter"]
