"""Optional query profiler hook for the database facade."""

from __future__ import annotations

import contextlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

from .types import QueryParams


@dataclass(frozen=True)
class QueryProfile:
    """Timing record for one facade call."""

    function: str
    duration: float
    statement: str
    values: QueryParams


class QueryProfiler:
    """Collects `QueryProfile` records and logs each one.

    The profiler is inert until activated; a `Database` only pays for
    timing when `is_active()` is true.
    """

    log_format = "%s (%.6f seconds): %s"

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        *,
        active: bool = False,
        log_level: int = logging.DEBUG,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.log_level = log_level
        self._active = active
        self._profiles: List[QueryProfile] = []

    def set_active(self, active: bool) -> None:
        self._active = active

    def is_active(self) -> bool:
        return self._active

    @contextlib.contextmanager
    def profile(
        self, function: str, statement: str, values: QueryParams = None
    ) -> Iterator[None]:
        """Time the enclosed block and record it when the profiler is active.

        A failing block is still recorded before the exception propagates.
        """

        if not self._active:
            yield
            return

        started = time.perf_counter()
        try:
            yield
        finally:
            self.record(function, time.perf_counter() - started, statement, values)

    def record(
        self, function: str, duration: float, statement: str, values: Any = None
    ) -> QueryProfile:
        entry = QueryProfile(function, duration, statement, values)
        self._profiles.append(entry)
        self.logger.log(self.log_level, self.log_format, function, duration, statement)
        return entry

    def get_profiles(self) -> List[QueryProfile]:
        return list(self._profiles)

    def reset(self) -> None:
        self._profiles.clear()
