"""Concrete SQL dialect implementations for DB-API adapters."""

from __future__ import annotations

import logging
import re
from typing import Any, List, Mapping, Optional, Sequence

from ...core.errors import DialectMismatchError, QueryError
from ...core.query_builder import column_binding_clause, column_list

logger = logging.getLogger(__name__)

_ENUM_MEMBER = re.compile(r"'((?:[^']|'')*)'")

# SQLSTATE raised by lastval/currval before the session generated a value.
OBJECT_NOT_IN_PREREQUISITE_STATE = "55000"


def parse_enum_values(column_type: Any) -> List[str]:
    """Extract the members of an `enum('a','b')` or `set('a','b')` type.

    Members come back in their declared order with doubled quotes unescaped.

    Raises:
        DialectMismatchError: When `column_type` is not an enum or set type.
    """

    if isinstance(column_type, bytes):
        column_type = column_type.decode("utf-8")
    if not isinstance(column_type, str):
        raise DialectMismatchError(f"enum values failed: type mismatch ({column_type!r})")

    lowered = column_type.strip().lower()
    if not (lowered.startswith("enum(") or lowered.startswith("set(")):
        raise DialectMismatchError(f"enum values failed: type mismatch ({column_type})")

    return [value.replace("''", "'") for value in _ENUM_MEMBER.findall(column_type)]


class Dialect:
    """Base dialect that defines quoting, placeholders and engine queries."""

    name: str = "generic"
    paramstyle: str = "qmark"
    quote_prefix: str = '"'
    quote_suffix: str = '"'
    backslash_escapes: bool = False
    driver: str = ""

    def q(self, ident: str) -> str:
        """Quote SQL identifier."""

        return f"{self.quote_prefix}{ident}{self.quote_suffix}"

    def placeholder(self) -> str:
        """Return the driver's positional placeholder."""

        if self.paramstyle == "qmark":
            return "?"
        if self.paramstyle == "format":
            return "%s"
        raise ValueError(f"Unsupported paramstyle: {self.paramstyle}")

    def named_placeholder(self, key: str) -> str:
        """Return the driver's placeholder for a named binding."""

        if self.paramstyle == "qmark":
            return f":{key}"
        if self.paramstyle == "format":
            return f"%({key})s"
        raise ValueError(f"Unsupported paramstyle: {self.paramstyle}")

    def table_columns_sql(self) -> str:
        """Return a query selecting a table's column names in order.

        The query binds `:table` and may use `:database`, which is `None`
        when the connection was opened without a database name.
        """

        return (
            "SELECT COLUMN_NAME FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE TABLE_SCHEMA = :database AND TABLE_NAME = :table "
            "ORDER BY ORDINAL_POSITION"
        )

    def last_insert_id_sql(self, name: Optional[str] = None) -> str:
        raise NotImplementedError(f"{self.name} dialect cannot report inserted ids.")

    def last_insert_id(
        self, db: Any, cursor: Any, affected: int, name: Optional[str] = None
    ) -> Optional[int]:
        """Return the most recently generated id after an INSERT."""

        return getattr(cursor, "lastrowid", None)

    def upsert_clause(
        self,
        update_columns: Sequence[str],
        conflict_columns: Optional[Sequence[str]] = None,
    ) -> str:
        """Return the clause appended to an INSERT to update on conflict."""

        raise NotImplementedError(f"{self.name} dialect does not support upsert.")

    def enum_type_sql(self) -> str:
        """Return a query selecting a column's type description.

        The query binds `:database`, `:table` and `:column`.
        """

        raise NotImplementedError(f"{self.name} dialect has no enum introspection.")

    def enum_values(self, column_type: Any) -> List[str]:
        raise NotImplementedError(f"{self.name} dialect has no enum introspection.")

    def connect_kwargs(
        self,
        *,
        host: Optional[str],
        port: Optional[int],
        database: Optional[str],
        username: Optional[str],
        password: Optional[str],
        options: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Translate parsed DSN parts into driver `connect()` keyword arguments."""

        kwargs: dict[str, Any] = {}
        if host:
            kwargs["host"] = host
        if port is not None:
            kwargs["port"] = port
        if username is not None:
            kwargs["user"] = username
        if password is not None:
            kwargs["password"] = password
        kwargs.update(options)
        return kwargs


class SQLiteDialect(Dialect):
    """SQLite dialect (`?`/`:name` parameters, `ON CONFLICT` upserts)."""

    name = "sqlite"
    paramstyle = "qmark"
    quote_prefix = '"'
    quote_suffix = '"'
    driver = "sqlite3"

    def table_columns_sql(self) -> str:
        return "SELECT name FROM pragma_table_info(:table) ORDER BY cid"

    def last_insert_id_sql(self, name: Optional[str] = None) -> str:
        return "SELECT last_insert_rowid()"

    def upsert_clause(
        self,
        update_columns: Sequence[str],
        conflict_columns: Optional[Sequence[str]] = None,
    ) -> str:
        # SQLite 3.35+ accepts a target-less ON CONFLICT as the last clause.
        target = f" ({column_list(conflict_columns, self)})" if conflict_columns else ""
        return (
            f" ON CONFLICT{target} DO UPDATE SET "
            f"{column_binding_clause(update_columns, self)}"
        )

    def connect_kwargs(
        self,
        *,
        host: Optional[str],
        port: Optional[int],
        database: Optional[str],
        username: Optional[str],
        password: Optional[str],
        options: Mapping[str, Any],
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "database": database or ":memory:",
            # Autocommit: every helper call is durable on its own.
            "isolation_level": None,
        }
        kwargs.update(options)
        return kwargs


class PostgresDialect(Dialect):
    """PostgreSQL dialect (`%s` positional parameters, psycopg driver)."""

    name = "postgres"
    paramstyle = "format"
    quote_prefix = '"'
    quote_suffix = '"'
    driver = "psycopg"

    def table_columns_sql(self) -> str:
        return (
            "SELECT column_name FROM information_schema.columns "
            "WHERE table_catalog = current_database() AND table_schema = current_schema() "
            "AND table_name = :table ORDER BY ordinal_position"
        )

    def last_insert_id_sql(self, name: Optional[str] = None) -> str:
        if name:
            return "SELECT currval(:name)"
        return "SELECT lastval()"

    def last_insert_id(
        self, db: Any, cursor: Any, affected: int, name: Optional[str] = None
    ) -> Optional[int]:
        """Return `lastval()` (or `currval(name)`), or `None` when undefined.

        Tables without a sequence leave `lastval()` undefined for the session;
        the INSERT itself has still succeeded.
        """

        try:
            return db.get_inserted_id(name)
        except QueryError as exc:
            if exc.code != OBJECT_NOT_IN_PREREQUISITE_STATE:
                raise
            logger.debug("no sequence value after insert: %s", exc.driver_message)
            return None

    def upsert_clause(
        self,
        update_columns: Sequence[str],
        conflict_columns: Optional[Sequence[str]] = None,
    ) -> str:
        if not conflict_columns:
            raise ValueError("postgres upsert requires conflict_columns.")
        return (
            f" ON CONFLICT ({column_list(conflict_columns, self)}) DO UPDATE SET "
            f"{column_binding_clause(update_columns, self)}"
        )

    def connect_kwargs(
        self,
        *,
        host: Optional[str],
        port: Optional[int],
        database: Optional[str],
        username: Optional[str],
        password: Optional[str],
        options: Mapping[str, Any],
    ) -> dict[str, Any]:
        kwargs = super().connect_kwargs(
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            options={},
        )
        if database:
            kwargs["dbname"] = database
        kwargs["autocommit"] = True
        kwargs.update(options)
        return kwargs


class MySQLDialect(Dialect):
    """MySQL dialect (`%s` positional parameters, backtick identifiers)."""

    name = "mysql"
    paramstyle = "format"
    quote_prefix = "`"
    quote_suffix = "`"
    backslash_escapes = True
    driver = "pymysql"

    def table_columns_sql(self) -> str:
        return (
            "SELECT COLUMN_NAME FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE TABLE_SCHEMA = COALESCE(:database, DATABASE()) AND TABLE_NAME = :table "
            "ORDER BY ORDINAL_POSITION"
        )

    def last_insert_id_sql(self, name: Optional[str] = None) -> str:
        return "SELECT LAST_INSERT_ID()"

    def last_insert_id(
        self, db: Any, cursor: Any, affected: int, name: Optional[str] = None
    ) -> Optional[int]:
        # MySQL reports the first id generated by a multi-row INSERT.
        first_id = getattr(cursor, "lastrowid", None)
        if first_id is None or affected <= 1:
            return first_id
        return first_id + affected - 1

    def upsert_clause(
        self,
        update_columns: Sequence[str],
        conflict_columns: Optional[Sequence[str]] = None,
    ) -> str:
        """Return `ON DUPLICATE KEY UPDATE ...`.

        MySQL resolves conflicts against every unique key of the table, so
        `conflict_columns` is not used.
        """

        return f" ON DUPLICATE KEY UPDATE {column_binding_clause(update_columns, self)}"

    def enum_type_sql(self) -> str:
        return (
            "SELECT COLUMN_TYPE FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE TABLE_SCHEMA = COALESCE(:database, DATABASE()) AND TABLE_NAME = :table "
            "AND COLUMN_NAME = :column"
        )

    def enum_values(self, column_type: Any) -> List[str]:
        return parse_enum_values(column_type)

    def connect_kwargs(
        self,
        *,
        host: Optional[str],
        port: Optional[int],
        database: Optional[str],
        username: Optional[str],
        password: Optional[str],
        options: Mapping[str, Any],
    ) -> dict[str, Any]:
        kwargs = super().connect_kwargs(
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            options={},
        )
        if database:
            kwargs["database"] = database
        kwargs["charset"] = "utf8mb4"
        kwargs["autocommit"] = True
        kwargs.update(options)
        return kwargs
