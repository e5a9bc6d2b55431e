"""HTTP feed for the Solscan Pro token list API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from tokenrotor.adapters.feeds import ProviderAPIError, ProviderFeed, lookup
from tokenrotor.domain.model import ProviderId, RawProviderRecord

from .schema import SolscanResponse

if TYPE_CHECKING:
    from datetime import datetime

    from tokenrotor.adapters.http_resilience import ResilientClient

TOKEN_LIST_PATH = "/v2.0/token/list"


@dataclass(slots=True)
class SolscanFeed(ProviderFeed):
    provider: ClassVar[ProviderId] = ProviderId.SOLSCAN

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
                "sort_by": "holder",
                "sort_order": "desc",
                "page": 1,
                "page_size": self.config.limit,
            },
        )
        response = SolscanResponse.model_validate(payload)
        if not response.success:
            raise ProviderAPIError(self.provider, "request rejected")
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
