"""Basic CRUD helper example on an in-memory SQLite database."""

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

from simple_db import Database, QueryError


def main() -> None:
    # 1) Connect; init queries run once right after connecting.
    db = Database.connect(
        "sqlite://:memory:",
        queries=[
            "CREATE TABLE users ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT, email TEXT UNIQUE, age INTEGER)"
        ],
    )

    with db:
        # 2) Insert one row, then a batch. Ids come back newest first.
        print("Inserted:", db.insert("users", {"email": "alice@example.com", "age": 25}))
        print(
            "Inserted batch:",
            db.insert(
                "users",
                [
                    {"email": "bob@example.com", "age": 30},
                    {"email": "carol@example.com", "age": 41},
                ],
            ),
        )

        # 3) Read helpers.
        print("Count:", db.get_var("SELECT COUNT(*) FROM users"))
        print("Emails:", db.get_col("SELECT email FROM users ORDER BY id"))
        print("Row:", db.get_row("SELECT * FROM users WHERE id = ?", [1]))
        print("Ages by email:", db.get_map("SELECT email, age FROM users"))
        print("In list:", db.get_col("SELECT email FROM users WHERE id IN (:ids)", {"ids": [1, 3]}))

        # 4) Update and delete by criteria.
        print("Updated:", db.update("users", {"age": 31}, {"email": "bob@example.com"}))
        print("Deleted:", db.delete("users", {"id": 1}))

        # 5) Upsert on the unique email column.
        db.upsert("users", {"email": "bob@example.com", "age": 0}, {"age": 32}, ["email"])
        print("After upsert:", db.get_results("SELECT * FROM users ORDER BY id"))

        # 6) Driver failures carry a readable statement.
        try:
            db.insert("users", {"email": "carol@example.com", "age": 1})
        except QueryError as exc:
            print("Failed:", exc.driver_message, "|", exc.query)


if __name__ == "__main__":
    main()
