"""Where tokenrotor keeps its database and HTTP response cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Literal, cast

from .env import env_choice, optional_env_var

APP_DIR_NAME: Final[str] = "tokenrotor"
DEFAULT_DB_FILENAME: Final[str] = "tokenrotor.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"

type HttpCacheMode = Literal["memory", "sqlite", "off"]
HTTP_CACHE_MODES: Final[tuple[HttpCacheMode, ...]] = ("memory", "sqlite", "off")


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Resolved storage locations.

    ``http_cache`` selects how feed responses are cached: in process memory, in a
    SQLite file next to the database, or not at all.
    """

    data_dir: Path
    http_cache: HttpCacheMode = "memory"

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.ensure_data_dir() / DEFAULT_DB_FILENAME}"

    def http_cache_path(self) -> Path:
        return self.ensure_data_dir() / HTTP_CACHE_FILENAME


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _default_data_dir() -> Path:
    xdg = os.getenv("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    env_dir = optional_env_var("TOKENROTOR_DATA_DIR")
    mode = env_choice("TOKENROTOR_HTTP_CACHE", HTTP_CACHE_MODES, "memory")
    return StorageConfig(
        data_dir=Path(env_dir) if env_dir else _default_data_dir(),
        http_cache=cast(HttpCacheMode, mode),
    )


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory."""

    env_uri = optional_env_var("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(uri=env_uri)
    return DatabaseConfig(uri=(storage or get_storage_config()).database_uri())


def get_http_cache_path() -> Path:
    return get_storage_config().http_cache_path()
