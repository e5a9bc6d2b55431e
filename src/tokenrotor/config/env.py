"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import InvalidConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = os.getenv(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value

    if missing:
        raise MissingConfigurationError.for_names(missing)

    return values


def require_env_var(name: str) -> str:
    """Return a required environment variable by name."""

    return require_env_vars([name])[name]


def optional_env_var(name: str) -> str | None:
    """Return a stripped environment variable, treating blank values as unset."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def env_int(name: str, default: int | None) -> int | None:
    raw = optional_env_var(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidConfigurationError(name, raw, "an integer") from exc


def env_float(name: str, default: float | None) -> float | None:
    raw = optional_env_var(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise InvalidConfigurationError(name, raw, "a number") from exc


def env_choice(name: str, choices: Sequence[str], default: str) -> str:
    """Return a lower-cased setting that must be one of ``choices``."""

    raw = optional_env_var(name)
    if raw is None:
        return default
    value = raw.lower()
    if value not in choices:
        raise InvalidConfigurationError(name, raw, f"one of {', '.join(choices)}")
    return value
