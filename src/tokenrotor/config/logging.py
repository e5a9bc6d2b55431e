"""Logging setup for the CLI and the long-running scheduler."""

from __future__ import annotations

import logging
from typing import Final

from .env import optional_env_var
from .errors import InvalidConfigurationError

LOG_FORMAT: Final = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Transport chatter drowns the per-cycle summaries at INFO.
NOISY_LOGGERS: Final = ("httpx", "httpcore", "hishel", "aiolimiter", "alembic.runtime.migration")


def resolve_level(level: int | None = None) -> int:
    """Explicit level first, then ``TOKENROTOR_LOG_LEVEL``, then INFO."""

    if level is not None:
        return level
    raw = optional_env_var("TOKENROTOR_LOG_LEVEL")
    if raw is None:
        return logging.INFO
    resolved = logging.getLevelNamesMapping().get(raw.upper())
    if resolved is None:
        raise InvalidConfigurationError("TOKENROTOR_LOG_LEVEL", raw, "a logging level name")
    return resolved


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    effective = resolve_level(level)
    logging.basicConfig(level=effective, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    if effective > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
