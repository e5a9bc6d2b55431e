"""HTTP feed for the BirdEye token list API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from tokenrotor.adapters.feeds import ProviderAPIError, ProviderFeed, lookup
from tokenrotor.domain.model import ProviderId, RawProviderRecord

from .schema import BirdEyeResponse

if TYPE_CHECKING:
    from datetime import datetime

    from tokenrotor.adapters.http_resilience import ResilientClient

TOKEN_LIST_PATH = "/defi/tokenlist"


@dataclass(slots=True)
class BirdEyeFeed(ProviderFeed):
    provider: ClassVar[ProviderId] = ProviderId.BIRDEYE

    async def _fetch_records(
        self,
        client: ResilientClient,
        *,
        received_at: datetime,
    ) -> list[RawProviderRecord]:
        payload = await self._get_json(
            client,
            TOKEN_LIST_PATH,
            params={
                "sort_by": "v24hUSD",
                "sort_type": "desc",
                "offset": 0,
                "limit": self.config.limit,
            },
        )
        response = BirdEyeResponse.model_validate(payload)
        if not response.success:
            raise ProviderAPIError(self.provider, response.message or "request rejected")
        return [
            RawProviderRecord(
                provider=self.provider,
                address=address if isinstance(address := lookup(item, "address"), str) else None,
                chain_hint="solana",
                received_at=received_at,
                payload=item,
            )
            for item in response.items()
        ]
