"""Show SQL generation differences across SQLite/Postgres/MySQL dialects."""

from __future__ import annotations

import sys
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "simple_db").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from simple_db import get_statement
from simple_db.core.query_builder import build_multi_insert, build_update, build_upsert
from simple_db.core.statement import rebuild
from simple_db.ports.db_api.dialects import MySQLDialect, PostgresDialect, SQLiteDialect


def show_for_dialect(name: str, dialect) -> None:  # noqa: ANN001
    print(f"\n===== {name} =====")

    rows = [{"email": "a@example.com", "age": 20}, {"email": "b@example.com", "age": 30}]
    for statement in (
        build_multi_insert("users", rows, dialect),
        build_update("users", {"age": 21}, {"email": "a@example.com"}, dialect),
    ):
        sql, params = rebuild(statement.sql, statement.params, dialect)
        print("SQL:", sql)
        print("Params:", params)
        print("Readable:", get_statement(statement.sql, statement.params))

    try:
        upsert = build_upsert("users", rows[0], {"age": 22}, dialect, ["email"])
        print("Upsert:", rebuild(upsert.sql, upsert.params, dialect)[0])
    except NotImplementedError as exc:
        print("Upsert:", exc)


def main() -> None:
    show_for_dialect("SQLiteDialect", SQLiteDialect())
    show_for_dialect("PostgresDialect", PostgresDialect())
    show_for_dialect("MySQLDialect", MySQLDialect())


if __name__ == "__main__":
    main()
