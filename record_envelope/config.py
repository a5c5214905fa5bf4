"""
Runtime settings loaded from the environment (and an optional .env file).

Variables:
- DATABASE_URL: PostgreSQL DSN for the Postgres collaborators (optional)
- RECORD_ENVELOPE_DB_POOL_MIN / RECORD_ENVELOPE_DB_POOL_MAX: pool bounds
- RECORD_ENVELOPE_LOG_LEVEL: logging level name (default INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    """Resolved configuration."""

    database_url: Optional[str] = None
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    log_level: str = "INFO"


def load_settings(env_file: Optional[Union[str, Path]] = None) -> Settings:
    """
    Load settings from the environment.

    Values already present in the environment win over the .env file.

    Args:
        env_file: Path to a .env file (default: search from the working directory)

    Raises:
        ConfigError: If a value is present but invalid
    """
    load_dotenv(env_file or find_dotenv(usecwd=True))

    min_size = _int_env("RECORD_ENVELOPE_DB_POOL_MIN", 1)
    max_size = _int_env("RECORD_ENVELOPE_DB_POOL_MAX", 10)
    if min_size < 0 or max_size < 1 or min_size > max_size:
        raise ConfigError(
            f"Invalid pool bounds: min={min_size}, max={max_size}"
        )

    log_level = os.environ.get("RECORD_ENVELOPE_LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"Unknown log level: {log_level}")

    return Settings(
        database_url=os.environ.get("DATABASE_URL") or None,
        db_pool_min_size=min_size,
        db_pool_max_size=max_size,
        log_level=log_level,
    )


def configure_logging(settings: Settings) -> None:
    """Install a root logging configuration at the configured level."""
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
