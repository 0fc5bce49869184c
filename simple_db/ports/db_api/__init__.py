"""DB-API adapter, connector and dialect exports."""

from .connector import ParsedDsn, open_connection, parse_dsn
from .database import Database
from .dialects import Dialect, MySQLDialect, PostgresDialect, SQLiteDialect, parse_enum_values

__all__ = [
    "Database",
    "Dialect",
    "MySQLDialect",
    "ParsedDsn",
    "PostgresDialect",
    "SQLiteDialect",
    "open_connection",
    "parse_dsn",
    "parse_enum_values",
]
