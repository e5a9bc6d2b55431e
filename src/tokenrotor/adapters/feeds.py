"""Shared plumbing for upstream market-data feeds."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Annotated, ClassVar, cast

import httpx
from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError

from tokenrotor.adapters.http_resilience import ResilientClient, default_client_factory
from tokenrotor.domain.normalization import to_float, to_int
from tokenrotor.domain.ports import FeedUnavailableError

if TYPE_CHECKING:
    from httpx._types import QueryParamTypes

    from tokenrotor.config import ProviderConfig, ResilienceConfig
    from tokenrotor.domain.model import ProviderId, RawProviderRecord

log = getLogger(__name__)

LooseFloat = Annotated[float | None, BeforeValidator(to_float)]
LooseInt = Annotated[int | None, BeforeValidator(to_int)]


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


LooseStr = Annotated[str | None, BeforeValidator(_blank_to_none)]


class ProviderBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ProviderAPIError(FeedUnavailableError):
    """Raised when a provider answers with an application-level error."""


type JsonItem = Mapping[str, object]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def json_items(value: object) -> list[JsonItem]:
    """Keep the mapping entries of a JSON list, dropping anything else."""

    if not isinstance(value, list):
        return []
    return [cast(JsonItem, item) for item in cast(list[object], value) if isinstance(item, Mapping)]


def lookup(payload: object, *path: str) -> object:
    """Walk nested mappings, returning ``None`` when any step is missing."""

    current = payload
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = cast(JsonItem, current).get(key)
    return current


@dataclass(slots=True)
class ProviderFeed(ABC):
    """Base feed: one HTTP session per fetch, failures reported as unavailability."""

    provider: ClassVar[ProviderId]

    config: ProviderConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=default_client_factory
    )
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def fetch(self) -> list[RawProviderRecord] | None:
        try:
            async with self.client_factory(self.config.resilience) as client:
                records = await self._fetch_records(client, received_at=self.clock())
        except (httpx.HTTPError, ValidationError, FeedUnavailableError) as exc:
            log.warning("%s feed unavailable: %s", self.provider, exc)
            return None
        log.info("Fetched %d %s records", len(records), self.provider)
        return records

    @abstractmethod
    async def _fetch_records(
        self,
        client: ResilientClient,
        *,
        received_at: datetime,
    ) -> list[RawProviderRecord]: ...

    async def _get_json(
        self,
        client: ResilientClient,
        path: str,
        *,
        params: QueryParamTypes | None = None,
    ) -> object:
        response = await client.get(path, params=params)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as exc:
            raise FeedUnavailableError(self.provider, f"invalid JSON from {path}") from exc
