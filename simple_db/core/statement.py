"""Placeholder scanning: driver rebuild and human-readable reconstruction.

Queries handed to the database helpers use `?` (positional) or `:name`
(named) placeholders whatever the driver. `rebuild` expands sequence
bindings (`IN (?)` with three values becomes `IN (?, ?, ?)`) and translates
placeholders to the dialect's paramstyle. `get_statement` substitutes bound
values back into a query for logs and error messages.
"""

from __future__ import annotations

import re
from collections.abc import Mapping as MappingABC
from typing import Any, Callable, List, Tuple

from .contracts import DialectPort
from .types import NamedParams, QueryParams

# Comments, quoted literals and identifiers are matched first so placeholders
# inside them are left alone; `::` keeps PostgreSQL casts out of the named
# branch.
_STANDARD_LITERALS = (
    r"'(?:[^']|'')*'"
    r'|"(?:[^"]|"")*"'
)
# MySQL treats a backslash inside a literal as an escape and `#` as a comment.
_BACKSLASH_LITERALS = (
    r"'(?:[^'\\]|\\.|'')*'"
    r'|"(?:[^"\\]|\\.|"")*"'
    r"|#[^\r\n]*"
)
_COMMON_TOKENS = (
    r"|`[^`]*`"
    r"|--[^\r\n]*"
    r"|/\*.*?\*/"
    r"|::"
    r"|\?"
    r"|:[A-Za-z_][A-Za-z0-9_]*"
    r"|%"
)

_TOKEN = re.compile(_STANDARD_LITERALS + _COMMON_TOKENS, re.DOTALL)
_TOKEN_BACKSLASH = re.compile(_BACKSLASH_LITERALS + _COMMON_TOKENS, re.DOTALL)

_SEQUENCE_TYPES = (list, tuple)


def _scan(
    sql: str,
    *,
    positional: Callable[[], str],
    named: Callable[[str], str],
    literal: Callable[[str], str] = lambda tok: tok,
    backslash_escapes: bool = False,
) -> str:
    def replace(match: re.Match) -> str:
        token = match.group(0)
        if token == "?":
            return positional()
        if token == "::":
            return token
        if token.startswith(":"):
            return named(token[1:])
        return literal(token)

    pattern = _TOKEN_BACKSLASH if backslash_escapes else _TOKEN
    return pattern.sub(replace, sql)


def rebuild(sql: str, params: QueryParams, dialect: DialectPort) -> Tuple[str, QueryParams]:
    """Translate a `?`/`:name` query into the dialect's driver form.

    Args:
        sql: Query text using `?` or `:name` placeholders.
        params: Positional list, named mapping, or `None`.
        dialect: Dialect providing driver placeholder tokens.

    Returns:
        Driver-ready SQL and parameters.

    Raises:
        ValueError: When placeholders and bindings do not line up.
    """

    if params is None:
        return sql, None

    escape_percent = dialect.paramstyle == "format"

    def literal(token: str) -> str:
        if escape_percent:
            return token.replace("%", "%%")
        return token

    if isinstance(params, MappingABC):
        return _rebuild_named(sql, params, dialect, literal)
    return _rebuild_positional(sql, list(params), dialect, literal)


def _rebuild_named(
    sql: str,
    params: MappingABC,
    dialect: DialectPort,
    literal: Callable[[str], str],
) -> Tuple[str, NamedParams]:
    bound: NamedParams = {}

    def named(key: str) -> str:
        if key not in params:
            raise ValueError(f"No binding supplied for :{key}.")
        value = params[key]
        if isinstance(value, _SEQUENCE_TYPES):
            items = list(value) or [None]
            keys = [f"{key}__{index}" for index in range(len(items))]
            bound.update(zip(keys, items))
            return ", ".join(dialect.named_placeholder(k) for k in keys)
        bound[key] = value
        return dialect.named_placeholder(key)

    def positional() -> str:
        raise ValueError("Positional placeholder used with named bindings.")

    rebuilt = _scan(
        sql,
        positional=positional,
        named=named,
        literal=literal,
        backslash_escapes=dialect.backslash_escapes,
    )
    return rebuilt, bound


def _rebuild_positional(
    sql: str,
    params: List[Any],
    dialect: DialectPort,
    literal: Callable[[str], str],
) -> Tuple[str, List[Any]]:
    bound: List[Any] = []
    position = 0

    def positional() -> str:
        nonlocal position
        if position >= len(params):
            raise ValueError(
                f"Statement has more placeholders than the {len(params)} bindings supplied."
            )
        value = params[position]
        position += 1
        if isinstance(value, _SEQUENCE_TYPES):
            items = list(value) or [None]
            bound.extend(items)
            return ", ".join([dialect.placeholder()] * len(items))
        bound.append(value)
        return dialect.placeholder()

    def named(key: str) -> str:
        return f":{key}"

    rebuilt = _scan(
        sql,
        positional=positional,
        named=named,
        literal=literal,
        backslash_escapes=dialect.backslash_escapes,
    )
    if position != len(params):
        raise ValueError(
            f"Statement has {position} placeholders but {len(params)} bindings were supplied."
        )
    return rebuilt, bound


def render_value(value: Any) -> str:
    """Render one bound value the way `get_statement` prints it."""

    if value is None:
        return "NULL"
    if isinstance(value, _SEQUENCE_TYPES):
        return ",".join(render_value(item) for item in value)
    return str(value)


def get_statement(
    query: str, criteria: QueryParams = None, *, backslash_escapes: bool = False
) -> str:
    """Substitute bindings back into `query` for diagnostics.

    Positional placeholders take values in order of occurrence; named
    placeholders take the value bound to their key. Sequences render
    comma-joined and `None` renders as `NULL`. Values are not quoted or
    escaped: the result must never be executed. `backslash_escapes` makes
    the scanner treat backslashes in literals as escapes, as MySQL does.
    """

    if not criteria:
        return query

    if isinstance(criteria, MappingABC):

        def named(key: str) -> str:
            if key in criteria:
                return render_value(criteria[key])
            return f":{key}"

        return _scan(
            query,
            positional=lambda: "?",
            named=named,
            backslash_escapes=backslash_escapes,
        )

    values = list(criteria)
    position = 0

    def positional() -> str:
        nonlocal position
        if position >= len(values):
            return "?"
        value = values[position]
        position += 1
        return render_value(value)

    return _scan(
        query,
        positional=positional,
        named=lambda key: f":{key}",
        backslash_escapes=backslash_escapes,
    )
