"""Core port contracts used by the builders and the database facade."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence


class DialectPort(Protocol):
    """Dialect behavior required by statement building and execution."""

    name: str
    paramstyle: str
    quote_prefix: str
    quote_suffix: str
    backslash_escapes: bool
    driver: str

    def q(self, ident: str) -> str: ...

    def placeholder(self) -> str: ...

    def named_placeholder(self, key: str) -> str: ...

    def table_columns_sql(self) -> str: ...

    def last_insert_id(
        self, db: Any, cursor: Any, affected: int, name: Optional[str] = None
    ) -> Optional[int]: ...

    def upsert_clause(
        self,
        update_columns: Sequence[str],
        conflict_columns: Optional[Sequence[str]] = None,
    ) -> str: ...

    def enum_type_sql(self) -> str: ...

    def connect_kwargs(
        self,
        *,
        host: Optional[str],
        port: Optional[int],
        database: Optional[str],
        username: Optional[str],
        password: Optional[str],
        options: Mapping[str, Any],
    ) -> dict[str, Any]: ...

