"""SQL statement builders for the CRUD helpers.

This module centralizes SQL string compilation from simple argument shapes
(rows, criteria, column lists). Every statement uses `?` placeholders; the
database adapter translates them to the driver's paramstyle right before
execution. Table and column names are trusted identifiers and are never
escaped beyond the dialect's quoting characters.
"""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from collections.abc import Sequence as SequenceABC
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .contracts import DialectPort
from .errors import ColumnMismatchError
from .types import Criteria, InsertValues, PositionalParams, Row


@dataclass(frozen=True)
class CompiledStatement:
    """A compiled SQL statement with its positional bindings."""

    sql: str
    params: PositionalParams


def placeholders(count: int, placeholder: str = "?", surround: bool = True) -> str:
    """Return `count` comma-joined placeholder tokens.

    For a count of 3 this is `(?, ?, ?)`. Multi-row inserts pass a whole
    parenthesized group as `placeholder` with `surround=False`.
    """

    joined = ", ".join([placeholder] * count)
    return f"({joined})" if surround else joined


def column_list(columns: Iterable[str], dialect: DialectPort) -> str:
    """Quote and comma-join column names for an INSERT column clause."""

    return ", ".join(dialect.q(name) for name in columns)


def column_binding_clause(
    columns: Iterable[str], dialect: DialectPort, separator: str = ", "
) -> str:
    """Build `col = ?` clauses joined by `separator`.

    `", "` suits `SET` lists, `" AND "` suits `WHERE` predicates.
    """

    return separator.join(f"{dialect.q(name)} = ?" for name in columns)


def merge_bindings(*collections: Any) -> List[Any]:
    """Flatten value collections into one positional binding list.

    Collections are visited in argument order and entries in their own
    iteration order. Nested mappings, lists and tuples are walked
    recursively; every other value (including `None`) is a leaf.
    """

    bindings: List[Any] = []
    for collection in collections:
        _walk(collection, bindings)
    return bindings


def _walk(value: Any, out: List[Any]) -> None:
    if isinstance(value, MappingABC):
        for item in value.values():
            _walk(item, out)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _walk(item, out)
    else:
        out.append(value)


def is_multi_row(values: InsertValues) -> bool:
    """Return whether insert values are a batch of rows rather than one row."""

    return not isinstance(values, MappingABC) and isinstance(values, SequenceABC)


def verify_columns(columns: Sequence[str], rows: Sequence[Row]) -> None:
    """Ensure every row of a batch has exactly `columns`.

    Raises:
        ColumnMismatchError: On a differing column count or column-name set.
    """

    expected = set(columns)
    for index, row in enumerate(rows):
        if not isinstance(row, MappingABC):
            raise ColumnMismatchError(
                f"insert failed: row {index} is not a column mapping."
            )
        if len(row) != len(columns):
            raise ColumnMismatchError(
                f"insert failed: mismatched column counts (row {index} has "
                f"{len(row)}, expected {len(columns)})."
            )
        if set(row.keys()) != expected:
            raise ColumnMismatchError(
                f"insert failed: mismatched columns in row {index}: "
                f"{sorted(set(row.keys()) ^ expected)}"
            )


def build_insert(table: str, row: Row, dialect: DialectPort) -> CompiledStatement:
    """Build a single-row INSERT statement."""

    if not row:
        raise ValueError("insert values must not be empty.")

    columns = list(row.keys())
    sql = (
        f"INSERT INTO {table} ({column_list(columns, dialect)}) "
        f"VALUES {placeholders(len(columns))}"
    )
    return CompiledStatement(sql, merge_bindings(row))


def build_multi_insert(
    table: str, rows: Sequence[Row], dialect: DialectPort
) -> CompiledStatement:
    """Build one INSERT statement carrying every row of `rows`.

    Raises:
        ColumnMismatchError: When rows disagree on their column set.
    """

    if not rows:
        raise ValueError("insert values must not be empty.")
    first = rows[0]
    if not isinstance(first, MappingABC) or not first:
        raise ValueError("insert rows must be non-empty column mappings.")

    columns = list(first.keys())
    verify_columns(columns, rows)

    group = placeholders(len(columns))
    groups = placeholders(len(rows), group, surround=False)
    sql = f"INSERT INTO {table} ({column_list(columns, dialect)}) VALUES {groups}"

    # Later rows may list the same keys in a different order.
    ordered = [[row[name] for name in columns] for row in rows]
    return CompiledStatement(sql, merge_bindings(*ordered))


def build_update(
    table: str,
    values: Row,
    criteria: Optional[Criteria],
    dialect: DialectPort,
) -> CompiledStatement:
    """Build `UPDATE ... SET ... [WHERE ...]`.

    Empty criteria produce no WHERE clause, so every row is updated.
    """

    if not values:
        raise ValueError("update values must not be empty.")

    sql = f"UPDATE {table} SET {column_binding_clause(values.keys(), dialect)}"
    criteria = criteria or {}
    if criteria:
        sql += f" WHERE {column_binding_clause(criteria.keys(), dialect, ' AND ')}"
    return CompiledStatement(sql, merge_bindings(values, criteria))


def build_delete(
    table: str, criteria: Optional[Criteria], dialect: DialectPort
) -> CompiledStatement:
    """Build `DELETE FROM ... [WHERE ...]`.

    Empty criteria produce no WHERE clause, so every row is deleted.
    """

    sql = f"DELETE FROM {table}"
    criteria = criteria or {}
    if criteria:
        sql += f" WHERE {column_binding_clause(criteria.keys(), dialect, ' AND ')}"
    return CompiledStatement(sql, merge_bindings(criteria))


def build_upsert(
    table: str,
    values: Row,
    updates: Mapping[str, Any],
    dialect: DialectPort,
    conflict_columns: Optional[Sequence[str]] = None,
) -> CompiledStatement:
    """Build a single-row INSERT followed by the dialect's conflict clause.

    Bindings are the insert values followed by the update values.
    """

    if not updates:
        raise ValueError("upsert updates must not be empty.")

    insert = build_insert(table, values, dialect)
    clause = dialect.upsert_clause(list(updates.keys()), conflict_columns)
    return CompiledStatement(
        insert.sql + clause, insert.params + merge_bindings(updates)
    )


def inserted_ids(last_id: Optional[int], affected: int) -> List[int]:
    """Reconstruct generated ids from the affected count and the last id.

    Ids are assumed contiguous and are returned newest first:
    `[last_id, last_id - 1, ..., last_id - (affected - 1)]`. This only holds
    for auto-increment strategies that allocate one contiguous range per
    statement with no interleaving writer.
    """

    if affected <= 0 or last_id is None:
        return []
    return list(range(last_id, last_id - affected, -1))
