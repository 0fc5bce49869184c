"""Connection settings for `Database.from_config`.

Settings are plain constructor arguments or come from the environment:

    SIMPLE_DB_DSN       e.g. mysql://localhost:3306/shop
    SIMPLE_DB_USER
    SIMPLE_DB_PASSWORD
    SIMPLE_DB_INIT_QUERIES  semicolon-separated statements run after connect

Example:
    >>> config = DatabaseConfig.from_env(env_file=".env")
    >>> db = Database.from_config(config)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from dotenv import load_dotenv

DEFAULT_ENV_PREFIX = "SIMPLE_DB_"


@dataclass
class DatabaseConfig:
    """Database connection settings.

    Attributes:
        dsn: URL-style connection string (`sqlite:///app.db`,
            `mysql://user:pw@host:3306/db`, `postgresql://host/db`).
        username: Optional user; overrides the DSN's user part.
        password: Optional password; overrides the DSN's password part.
        options: Extra driver keyword arguments.
        queries: Statements run once right after connecting.
    """

    dsn: str
    username: Optional[str] = None
    password: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)
    queries: List[str] = field(default_factory=list)

    @classmethod
    def from_env(
        cls,
        prefix: str = DEFAULT_ENV_PREFIX,
        env_file: Optional[Union[str, Path]] = None,
    ) -> "DatabaseConfig":
        """Build settings from environment variables.

        Args:
            prefix: Variable name prefix.
            env_file: Optional `.env` file loaded first; variables already set
                in the environment win.

        Raises:
            KeyError: When `<prefix>DSN` is not set.
        """

        if env_file is not None:
            load_dotenv(dotenv_path=env_file)

        dsn = os.getenv(f"{prefix}DSN")
        if not dsn:
            raise KeyError(f"{prefix}DSN is not set.")

        raw_queries = os.getenv(f"{prefix}INIT_QUERIES", "")
        return cls(
            dsn=dsn,
            username=os.getenv(f"{prefix}USER"),
            password=os.getenv(f"{prefix}PASSWORD"),
            queries=[q.strip() for q in raw_queries.split(";") if q.strip()],
        )
