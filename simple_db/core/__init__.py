"""Public core API: statement builders, errors, profiling, and settings."""

from .config import DatabaseConfig
from .errors import (
    ColumnMismatchError,
    DatabaseConnectionError,
    DatabaseError,
    DialectMismatchError,
    QueryError,
)
from .profiler import QueryProfile, QueryProfiler
from .query_builder import (
    CompiledStatement,
    build_delete,
    build_insert,
    build_multi_insert,
    build_update,
    build_upsert,
    column_binding_clause,
    column_list,
    inserted_ids,
    merge_bindings,
    placeholders,
    verify_columns,
)
from .statement import get_statement, rebuild

__all__ = [
    "DatabaseConfig",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "ColumnMismatchError",
    "DialectMismatchError",
    "QueryProfile",
    "QueryProfiler",
    "CompiledStatement",
    "build_delete",
    "build_insert",
    "build_multi_insert",
    "build_update",
    "build_upsert",
    "column_binding_clause",
    "column_list",
    "inserted_ids",
    "merge_bindings",
    "placeholders",
    "verify_columns",
    "get_statement",
    "rebuild",
]
