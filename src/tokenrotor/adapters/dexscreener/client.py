"""HTTP feed for the DexScreener pair search and token lookup APIs."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar

import httpx
from pydantic import ValidationError

from tokenrotor.adapters.feeds import ProviderFeed
from tokenrotor.domain.model import ProviderId, RawProviderRecord
from tokenrotor.domain.ports import FeedUnavailableError

from .schema import PairPayload, SearchResponse
from .translator import select_token

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from tokenrotor.adapters.http_resilience import ResilientClient
    from tokenrotor.domain.model import TokenKey

log = getLogger(__name__)

SEARCH_PATH = "/latest/dex/search"
TOKENS_PATH = "/latest/dex/tokens/{addresses}"
# The tokens endpoint accepts at most 30 comma-separated addresses.
LOOKUP_BATCH_SIZE = 30


def _pool_key(pair: PairPayload) -> tuple[str, str] | None:
    address = select_token(pair).address
    if not address:
        return None
    return (pair.chain_id or "").lower(), address


def _liquidity(pair: PairPayload) -> float:
    return pair.liquidity.usd if pair.liquidity.usd is not None else -1.0


@dataclass(slots=True)
class _Pools:
    """Deepest pool per token plus items that did not parse."""

    deepest: dict[tuple[str, str], PairPayload] = field(default_factory=dict)
    malformed: list[dict[str, object]] = field(default_factory=list)

    def add(self, payload: object) -> None:
        response = SearchResponse.model_validate(payload)
        for item in response.pairs or []:
            try:
                pair = PairPayload.model_validate(item)
            except ValidationError:
                self.malformed.append(item)
                continue
            key = _pool_key(pair)
            if key is None:
                self.malformed.append(item)
                continue
            current = self.deepest.get(key)
            if current is None or _liquidity(pair) > _liquidity(current):
                self.deepest[key] = pair


@dataclass(slots=True)
class DexScreenerFeed(ProviderFeed):
    """Searches pairs and keeps the deepest pool per token."""

    provider: ClassVar[ProviderId] = ProviderId.DEXSCREENER

    async def _fetch_records(
        self,
        client: ResilientClient,
        *,
        received_at: datetime,
    ) -> list[RawProviderRecord]:
        pools = _Pools()
        for query in self.config.search_queries:
            pools.add(await self._get_json(client, SEARCH_PATH, params={"q": query}))

        records = [
            self._record(pair, received_at)
            for pair in list(pools.deepest.values())[: self.config.limit]
        ]
        if pools.malformed:
            log.debug("Passing %d unparsed DexScreener pairs through", len(pools.malformed))
        records.extend(
            RawProviderRecord(
                provider=self.provider,
                address=None,
                chain_hint=None,
                received_at=received_at,
                payload=item,
            )
            for item in pools.malformed
        )
        return records

    async def lookup(self, keys: Sequence[TokenKey]) -> list[RawProviderRecord] | None:
        """Fetch the deepest pool of each requested token; ``None`` when unavailable."""

        wanted = sorted({key.address for key in keys})
        if not wanted:
            return []
        pools = _Pools()
        try:
            async with self.client_factory(self.config.resilience) as client:
                received_at = self.clock()
                for start in range(0, len(wanted), LOOKUP_BATCH_SIZE):
                    batch = ",".join(wanted[start : start + LOOKUP_BATCH_SIZE])
                    pools.add(await self._get_json(client, TOKENS_PATH.format(addresses=batch)))
        except (httpx.HTTPError, ValidationError, FeedUnavailableError) as exc:
            log.warning("DexScreener token lookup unavailable: %s", exc)
            return None
        return [
            self._record(pair, received_at)
            for (_, address), pair in pools.deepest.items()
            if address in wanted
        ]

    def _record(self, pair: PairPayload, received_at: datetime) -> RawProviderRecord:
        return RawProviderRecord(
            provider=self.provider,
            address=select_token(pair).address,
            chain_hint=pair.chain_id,
            received_at=received_at,
            payload=pair,
        )
