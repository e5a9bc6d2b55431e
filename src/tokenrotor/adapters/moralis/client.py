"""HTTP feed for the Moralis Solana gateway."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from tokenrotor.adapters.feeds import ProviderFeed, lookup
from tokenrotor.domain.model import ProviderId, RawProviderRecord

from .schema import MoralisResponse

if TYPE_CHECKING:
    from datetime import datetime

    from tokenrotor.adapters.http_resilience import ResilientClient

GRADUATED_TOKENS_PATH = "/token/mainnet/exchange/pumpfun/graduated"


def _address(item: object) -> str | None:
    for name in ("tokenAddress", "token_address", "address"):
        value = lookup(item, name)
        if isinstance(value, str):
            return value
    return None


@dataclass(slots=True)
class MoralisFeed(ProviderFeed):
    provider: ClassVar[ProviderId] = ProviderId.MORALIS

    async def _fetch_records(
        self,
        client: ResilientClient,
        *,
        received_at: datetime,
    ) -> list[RawProviderRecord]:
        payload = await self._get_json(
            client, GRADUATED_TOKENS_PATH, params={"limit": self.config.limit}
        )
        response = MoralisResponse.model_validate(payload)
        return [
            RawProviderRecord(
                provider=self.provider,
                address=_address(item),
                chain_hint="solana",
                received_at=received_at,
                payload=item,
            )
            for item in response.items()
        ]
