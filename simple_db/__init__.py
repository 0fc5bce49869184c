"""Named CRUD helpers over DB-API drivers."""

import logging

from .core import (
    ColumnMismatchError,
    DatabaseConfig,
    DatabaseConnectionError,
    DatabaseError,
    DialectMismatchError,
    QueryError,
    QueryProfile,
    QueryProfiler,
    get_statement,
    merge_bindings,
    placeholders,
)
from .ports import Database, Dialect, MySQLDialect, PostgresDialect, SQLiteDialect

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Database",
    "DatabaseConfig",
    "Dialect",
    "SQLiteDialect",
    "PostgresDialect",
    "MySQLDialect",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "ColumnMismatchError",
    "DialectMismatchError",
    "QueryProfile",
    "QueryProfiler",
    "get_statement",
    "merge_bindings",
    "placeholders",
]
