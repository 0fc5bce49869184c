"""DB-API adapter implementation of the CRUD helper facade."""

from __future__ import annotations

import contextlib
import importlib
import logging
from typing import Any, Callable, ContextManager, Dict, List, Mapping, Optional, Sequence

from ...core.config import DatabaseConfig
from ...core.errors import (
    DatabaseConnectionError,
    DatabaseError,
    DialectMismatchError,
    QueryError,
    driver_error_details,
)
from ...core.profiler import QueryProfiler
from ...core.query_builder import (
    build_delete,
    build_insert,
    build_multi_insert,
    build_update,
    build_upsert,
    inserted_ids,
    is_multi_row,
)
from ...core.statement import get_statement, rebuild
from ...core.types import Criteria, InsertValues, MaybeRow, QueryParams, Row, RowMapping, Rows
from .connector import open_connection
from .dialects import Dialect

logger = logging.getLogger(__name__)


def _is_exception_type(value: Any) -> bool:
    return isinstance(value, type) and issubclass(value, BaseException)


class Database:
    """Thin DB-API wrapper exposing named query helpers.

    Queries use `?` or `:name` placeholders whatever the driver; bound
    lists and tuples expand to one placeholder per item. Driver failures
    surface as `QueryError` carrying a readable version of the statement.

    One instance owns one connection. It is not safe for concurrent use
    without external synchronization.
    """

    def __init__(
        self,
        conn: Any,
        dialect: Dialect,
        *,
        database: Optional[str] = None,
        profiler: Optional[QueryProfiler] = None,
    ):
        """Wrap an open DB-API connection.

        Args:
            conn: DB-API connection object. Commit behavior stays with the
                caller; `Database.connect` opens autocommit connections.
            dialect: Concrete SQL dialect instance.
            database: Database name used by introspection queries.
            profiler: Optional profiler timing every call.
        """

        self.conn: Any | None = conn
        self.dialect = dialect
        self.profiler = profiler
        self._database = database
        self._closed = False
        self._last_error: tuple[Any, str] | None = None
        self._driver_errors = self._resolve_driver_errors(conn)

    @classmethod
    def connect(
        cls,
        dsn: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
        queries: Optional[Sequence[str]] = None,
        profiler: Optional[QueryProfiler] = None,
    ) -> Database:
        """Open a connection from a URL-style DSN and verify it.

        Args:
            dsn: Connection string, e.g. `mysql://user:pw@localhost:3306/shop`.
            username: Overrides the DSN user.
            password: Overrides the DSN password.
            options: Extra driver `connect()` keyword arguments.
            queries: Statements run once after connecting.
            profiler: Optional profiler timing every call.

        Raises:
            DatabaseConnectionError: If the connection cannot be established
                or does not answer `SELECT 1`.
        """

        conn, dialect, database = open_connection(dsn, username, password, options)
        db = cls(conn, dialect, database=database, profiler=profiler)
        try:
            for query in queries or ():
                db.run_query(query)
            db.get_var("SELECT 1")
        except QueryError as exc:
            db.close()
            raise DatabaseConnectionError("Unable to connect to database.", exc.query) from exc
        return db

    @classmethod
    def from_config(
        cls, config: DatabaseConfig, profiler: Optional[QueryProfiler] = None
    ) -> Database:
        """Connect using a `DatabaseConfig`."""

        return cls.connect(
            config.dsn,
            config.username,
            config.password,
            options=config.options,
            queries=config.queries,
            profiler=profiler,
        )

    def _resolve_driver_errors(self, conn: Any) -> tuple[type[BaseException], ...]:
        # DB-API connections may expose the driver's exceptions as attributes.
        driver_error = getattr(conn, "Error", None)
        if not _is_exception_type(driver_error) and self.dialect.driver:
            try:
                module_obj = importlib.import_module(self.dialect.driver)
            except ImportError:
                module_obj = None
            driver_error = getattr(module_obj, "Error", None)
        if _is_exception_type(driver_error):
            return (driver_error,)
        logger.warning(
            "no DB-API Error class found for %s; wrapping every exception",
            type(conn).__name__,
        )
        return (Exception,)

    def _render(self, sql: str, params: QueryParams) -> str:
        return get_statement(
            sql, params, backslash_escapes=self.dialect.backslash_escapes
        )

    def _require_open_connection(self) -> Any:
        if self._closed or self.conn is None:
            raise DatabaseConnectionError("connection is closed")
        return self.conn

    def _profile(self, function: str, sql: str, params: QueryParams) -> ContextManager[None]:
        if self.profiler is None:
            return contextlib.nullcontext()
        return self.profiler.profile(function, sql, params)

    def _perform(
        self,
        function: str,
        sql: str,
        params: QueryParams,
        handler: Callable[[Any], Any],
    ) -> Any:
        """Rebuild, execute and hand the cursor to `handler`, wrapping driver errors."""

        conn = self._require_open_connection()
        try:
            driver_sql, driver_params = rebuild(sql, params, self.dialect)
        except ValueError as exc:
            raise QueryError(
                f"{function} failed: {exc}", self._render(sql, params)
            ) from exc

        self._last_error = None
        logger.debug("%s: %s", function, driver_sql)
        try:
            with self._profile(function, sql, params):
                cur = conn.cursor()
                if driver_params is None:
                    cur.execute(driver_sql)
                else:
                    cur.execute(driver_sql, driver_params)
                return handler(cur)
        except DatabaseError:
            raise
        except self._driver_errors as exc:
            code, message = driver_error_details(exc)
            self._last_error = (code, message)
            statement = self._render(sql, params)
            logger.error("%s failed (%s): %s", function, code, statement)
            raise QueryError(
                f"{function} failed: {message}",
                statement,
                code=code,
                driver_message=message,
            ) from exc

    def execute(self, sql: str, params: QueryParams = None) -> Any:
        """Execute SQL with optional parameters and return the open cursor.

        Lower-level than `run_query`: the caller iterates or fetches from
        the driver cursor itself, e.g. to stream a large result.
        """

        return self._perform("execute", sql, params, lambda cur: cur)

    def _column_names(self, cursor: Any) -> List[str]:
        desc = getattr(cursor, "description", None)
        if not desc:
            raise TypeError("Cursor has no description; cannot map tuple rows to dict.")
        return [d[0] for d in desc]

    def _row_values(self, row: Any) -> List[Any]:
        if isinstance(row, Mapping):
            return list(row.values())
        return list(row)

    def _row_to_mapping(self, cursor: Any, row: Any) -> RowMapping:
        """Normalize row object to an ordered dict.

        Supports mapping rows directly and tuple/list rows via
        `cursor.description`.
        """

        if isinstance(row, Mapping):
            return dict(row)

        if isinstance(row, (tuple, list)):
            return dict(zip(self._column_names(cursor), row))

        try:
            m = dict(row)
            if m:
                return m
        except (TypeError, ValueError):
            pass

        raise TypeError(f"Unsupported row type: {type(row)}")

    def fetchone(self, sql: str, params: QueryParams = None) -> MaybeRow:
        """Execute query and return one normalized row mapping."""

        def handler(cur: Any) -> MaybeRow:
            row = cur.fetchone()
            return None if row is None else self._row_to_mapping(cur, row)

        return self._perform("fetchone", sql, params, handler)

    def fetchall(self, sql: str, params: QueryParams = None) -> Rows:
        """Execute query and return all rows as normalized mappings."""

        def handler(cur: Any) -> Rows:
            return [self._row_to_mapping(cur, r) for r in cur.fetchall()]

        return self._perform("fetchall", sql, params, handler)

    def is_connected(self) -> bool:
        """Return whether this adapter still holds an open connection."""

        return not self._closed and self.conn is not None

    def get_database(self) -> Optional[str]:
        """Return the connected database name, or `None` once closed."""

        return self._database if self.is_connected() else None

    def get_table_columns(self, table: str) -> List[Any]:
        """Return the column names of `table` in declaration order."""

        params = {"database": self._database, "table": table}
        return self.get_col(self.dialect.table_columns_sql(), params)

    def get_inserted_id(self, name: Optional[str] = None) -> Optional[int]:
        """Return the most recently generated id on this connection.

        Args:
            name: Sequence name, only meaningful for PostgreSQL.
        """

        params = {"name": name} if name else None
        value = self.get_var(self.dialect.last_insert_id_sql(name), params)
        return None if value is None else int(value)

    def get_error(self) -> Optional[tuple[Any, str]]:
        """Return `(code, message)` of the last call's driver error, if any."""

        return self._last_error

    def get_var(self, query: str, criteria: QueryParams = None) -> Any:
        """Return the first column of the first row, or `None`."""

        def handler(cur: Any) -> Any:
            row = cur.fetchone()
            if row is None:
                return None
            values = self._row_values(row)
            return values[0] if values else None

        return self._perform("get_var", query, criteria, handler)

    def get_col(self, query: str, criteria: QueryParams = None) -> List[Any]:
        """Return the first column of every row, or an empty list."""

        def handler(cur: Any) -> List[Any]:
            return [self._row_values(row)[0] for row in cur.fetchall()]

        return self._perform("get_col", query, criteria, handler)

    def get_row(self, query: str, criteria: QueryParams = None) -> RowMapping:
        """Return the first row as a dict, or an empty dict."""

        return self.fetchone(query, criteria) or {}

    def get_map(self, query: str, criteria: QueryParams = None) -> Dict[Any, Any]:
        """Return rows keyed by their first column.

        With exactly two selected columns the value is the second column;
        otherwise it is a dict of the remaining columns.
        """

        def handler(cur: Any) -> Dict[Any, Any]:
            result: Dict[Any, Any] = {}
            for row in cur.fetchall():
                mapping = self._row_to_mapping(cur, row)
                items = list(mapping.items())
                key = items[0][1]
                rest = items[1:]
                result[key] = rest[0][1] if len(rest) == 1 else dict(rest)
            return result

        return self._perform("get_map", query, criteria, handler)

    def get_results(self, query: str, criteria: QueryParams = None) -> Rows:
        """Return every selected row as a dict, or an empty list."""

        return self.fetchall(query, criteria)

    def _inserted_ids(self, cursor: Any) -> List[int]:
        affected = cursor.rowcount
        if affected is None or affected <= 0:
            return []
        last_id = self.dialect.last_insert_id(self, cursor, affected)
        # An id lookup the dialect recovered from does not fail the insert.
        self._last_error = None
        return inserted_ids(last_id, affected)

    def insert(self, table: str, values: InsertValues) -> List[int]:
        """Insert one row or a batch of rows and return the generated ids.

        Args:
            table: Target table (trusted identifier).
            values: One row mapping, or a sequence of row mappings sharing
                the same columns.

        Returns:
            Generated ids, newest first. Empty when nothing was inserted, or
            when the engine generated no id (a PostgreSQL table without a
            sequence).
            Batch ids are reconstructed from the last id and the affected
            count, which assumes one contiguous auto-increment range per
            statement and no interleaving writer.

        Raises:
            ColumnMismatchError: If batch rows disagree on their columns;
                nothing is executed.
            ValueError: If there is nothing to insert.
        """

        if is_multi_row(values):
            statement = build_multi_insert(table, values, self.dialect)  # type: ignore[arg-type]
        else:
            statement = build_insert(table, values, self.dialect)  # type: ignore[arg-type]
        return self._perform("insert", statement.sql, statement.params, self._inserted_ids)

    def update(self, table: str, values: Row, criteria: Optional[Criteria] = None) -> int:
        """Update `values` in rows matching every `criteria` pair.

        Omitted or empty criteria update EVERY row of the table.

        Returns:
            Number of affected rows (including zero).
        """

        statement = build_update(table, values, criteria, self.dialect)
        return self._perform(
            "update", statement.sql, statement.params, lambda cur: cur.rowcount
        )

    def delete(self, table: str, criteria: Optional[Criteria] = None) -> int:
        """Delete rows matching every `criteria` pair.

        Omitted or empty criteria delete EVERY row of the table.

        Returns:
            Number of deleted rows (including zero).
        """

        statement = build_delete(table, criteria, self.dialect)
        return self._perform(
            "delete", statement.sql, statement.params, lambda cur: cur.rowcount
        )

    def upsert(
        self,
        table: str,
        values: Row,
        updates: Row,
        conflict_columns: Optional[Sequence[str]] = None,
    ) -> int:
        """Insert `values`, or apply `updates` when the row already exists.

        Args:
            table: Target table.
            values: Row to insert.
            updates: Columns and values to set on conflict.
            conflict_columns: Unique columns defining the conflict; required
                by PostgreSQL, optional for SQLite, unused by MySQL.

        Returns:
            Driver affected-row count.
        """

        statement = build_upsert(table, values, updates, self.dialect, conflict_columns)
        return self._perform(
            "upsert", statement.sql, statement.params, lambda cur: cur.rowcount
        )

    def get_enum_values(self, table: str, column: str) -> List[str]:
        """Return the members of an ENUM or SET column in declared order.

        Raises:
            DialectMismatchError: If the column is missing or not an enum/set.
            NotImplementedError: If the dialect has no enum introspection.
        """

        query = self.dialect.enum_type_sql()
        params = {"database": self._database, "table": table, "column": column}
        column_type = self.get_var(query, params)
        if column_type is None:
            raise DialectMismatchError(
                f"enum values failed: column {table}.{column} not found",
                self._render(query, params),
            )
        return self.dialect.enum_values(column_type)

    def run_query(self, query: str, criteria: QueryParams = None) -> bool:
        """Execute a statement that fits none of the other helpers.

        Useful for `INSERT INTO ... SELECT` and DDL. Returns `True` once the
        driver accepted the statement; failures raise `QueryError`.
        """

        return self._perform("run_query", query, criteria, lambda cur: True)

    def get_statement(self, query: str, criteria: QueryParams = None) -> str:
        """Return `query` with its bindings substituted, for diagnostics only."""

        return self._render(query, criteria)

    def close(self) -> None:
        """Close the underlying connection."""

        if self._closed:
            return
        conn = self.conn
        self._closed = True
        self.conn = None
        if conn is None:
            return
        close = getattr(conn, "close", None)
        if callable(close):
            close()
        logger.info("closed %s connection", self.dialect.name)

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
