"""Shared core type aliases used across contracts, builders, and ports."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

NamedParams = Dict[str, Any]
PositionalParams = List[Any]
QueryParams = Union[NamedParams, PositionalParams, None]

Row = Mapping[str, Any]
Criteria = Mapping[str, Any]
InsertValues = Union[Row, Sequence[Row]]

RowMapping = Dict[str, Any]
Rows = List[RowMapping]
MaybeRow = Optional[RowMapping]
