"""Exception hierarchy raised by the database helpers."""

from __future__ import annotations

from typing import Any, Optional


class DatabaseError(Exception):
    """Base error; carries the reconstructed statement when one is known."""

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(message)
        self.query = query


class DatabaseConnectionError(DatabaseError, ConnectionError):
    """The connection could not be established, verified, or is closed."""


class QueryError(DatabaseError):
    """A driver failure during execution.

    Attributes:
        code: Driver error code (SQLSTATE, MySQL errno, sqlite error name).
        driver_message: Driver error message.
        query: Human-readable statement text, for diagnostics only.
    """

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        *,
        code: Any = None,
        driver_message: Optional[str] = None,
    ):
        super().__init__(message, query)
        self.code = code
        self.driver_message = driver_message

    def __str__(self) -> str:
        base = super().__str__()
        if self.query:
            return f"{base} [statement: {self.query}]"
        return base


class ColumnMismatchError(DatabaseError, ValueError):
    """Rows of a multi-row insert disagree on their column set."""


class DialectMismatchError(DatabaseError, TypeError):
    """A dialect-specific introspection hit a column of the wrong kind."""


def driver_error_details(exc: BaseException) -> tuple[Any, str]:
    """Extract a `(code, message)` pair from a DB-API driver exception."""

    # psycopg / psycopg2
    code = getattr(exc, "sqlstate", None) or getattr(exc, "pgcode", None)
    if code is None:
        # sqlite3 (3.11+)
        code = getattr(exc, "sqlite_errorname", None)
    args = getattr(exc, "args", ())
    if code is None and len(args) >= 2 and isinstance(args[0], int):
        # PyMySQL / MySQLdb: (errno, message)
        return args[0], str(args[1])
    return code, str(exc)
