"""DSN parsing and driver loading for `Database.connect`."""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, unquote, urlparse

from ...core.errors import DatabaseConnectionError
from .dialects import Dialect, MySQLDialect, PostgresDialect, SQLiteDialect

logger = logging.getLogger(__name__)

DIALECTS: Dict[str, type[Dialect]] = {
    "sqlite": SQLiteDialect,
    "mysql": MySQLDialect,
    "mariadb": MySQLDialect,
    "postgres": PostgresDialect,
    "postgresql": PostgresDialect,
}

_INSTALL_HINTS = {
    "pymysql": "pip install 'simple-db[mysql]'",
    "psycopg": "pip install 'simple-db[postgres]'",
}


@dataclass(frozen=True)
class ParsedDsn:
    """Connection string split into its parts."""

    scheme: str
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    options: Dict[str, str] = field(default_factory=dict)


def parse_dsn(dsn: str) -> ParsedDsn:
    """Parse a URL-style DSN.

    `sqlite:///app.db` is a relative path, `sqlite:////tmp/app.db` an
    absolute one, `sqlite://:memory:` (or `sqlite://`) an in-memory database.
    Query-string pairs become driver options.

    Raises:
        DatabaseConnectionError: For a malformed DSN or an unknown scheme.
    """

    scheme, sep, rest = dsn.partition("://")
    scheme = scheme.lower()
    if not sep or scheme not in DIALECTS:
        raise DatabaseConnectionError(f"Unsupported DSN: {dsn!r}")

    if scheme == "sqlite":
        path, _, query = rest.partition("?")
        if path.startswith("/"):
            path = path[1:]
        return ParsedDsn(
            scheme=scheme,
            database=path or ":memory:",
            options=dict(parse_qsl(query)),
        )

    parsed = urlparse(dsn)
    try:
        port = parsed.port
    except ValueError as exc:
        raise DatabaseConnectionError(f"Invalid port in DSN: {dsn!r}") from exc

    return ParsedDsn(
        scheme=scheme,
        host=parsed.hostname,
        port=port,
        database=unquote(parsed.path.lstrip("/")) or None,
        username=unquote(parsed.username) if parsed.username else None,
        password=unquote(parsed.password) if parsed.password else None,
        options=dict(parse_qsl(parsed.query)),
    )


def dialect_for(scheme: str) -> Dialect:
    """Return a dialect instance for a DSN scheme."""

    try:
        return DIALECTS[scheme.lower()]()
    except KeyError:
        raise DatabaseConnectionError(f"Unsupported database engine: {scheme!r}") from None


def load_driver(module_name: str) -> Any:
    """Import a DB-API driver module."""

    try:
        return importlib.import_module(module_name)
    except ImportError as exc:
        hint = _INSTALL_HINTS.get(module_name, f"pip install {module_name}")
        raise DatabaseConnectionError(
            f"{module_name} is required for this DSN. Install with `{hint}`."
        ) from exc


def open_connection(
    dsn: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    options: Optional[Mapping[str, Any]] = None,
) -> Tuple[Any, Dialect, Optional[str]]:
    """Open a DB-API connection for `dsn`.

    Explicit `username`/`password` override the DSN's credentials and
    `options` override its query-string options.

    Returns:
        `(connection, dialect, database_name)`.

    Raises:
        DatabaseConnectionError: When the driver is missing or refuses to connect.
    """

    parsed = parse_dsn(dsn)
    dialect = dialect_for(parsed.scheme)
    driver = load_driver(dialect.driver)

    merged_options: Dict[str, Any] = dict(parsed.options)
    merged_options.update(options or {})
    kwargs = dialect.connect_kwargs(
        host=parsed.host,
        port=parsed.port,
        database=parsed.database,
        username=username if username is not None else parsed.username,
        password=password if password is not None else parsed.password,
        options=merged_options,
    )

    try:
        conn = driver.connect(**kwargs)
    except Exception as exc:
        raise DatabaseConnectionError(
            f"Unable to connect to {parsed.scheme} database {parsed.database!r}: {exc}"
        ) from exc

    logger.info(
        "connected to %s database %s on %s", dialect.name, parsed.database, parsed.host or "local"
    )
    return conn, dialect, parsed.database
