"""Token images from the TrustWallet assets repository."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx

from tokenrotor.adapters.http_resilience import ResilientClient, default_client_factory
from tokenrotor.domain.model import Chain

if TYPE_CHECKING:
    from tokenrotor.config import ResilienceConfig
    from tokenrotor.domain.model import TokenKey

log = getLogger(__name__)

# Directory names under blockchains/ in the assets repository.
TRUSTWALLET_CHAINS: Final[dict[Chain, str]] = {
    Chain.SOLANA: "solana",
    Chain.ETHEREUM: "ethereum",
    Chain.BSC: "smartchain",
    Chain.BASE: "base",
}


def trustwallet_logo_path(key: TokenKey) -> str | None:
    folder = TRUSTWALLET_CHAINS.get(key.chain)
    address = key.address.strip()
    if folder is None or not address:
        return None
    return f"/blockchains/{folder}/assets/{address}/logo.png"


@dataclass(slots=True)
class TrustWalletLogoResolver:
    """Checks whether an asset logo exists and remembers the answer per token.

    Transport failures and server errors are not remembered, so the token is tried
    again next cycle.
    """

    config: ResilienceConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=default_client_factory
    )
    _known: dict[TokenKey, str | None] = field(default_factory=dict, init=False, repr=False)
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def resolve(self, key: TokenKey) -> str | None:
        if key in self._known:
            return self._known[key]
        path = trustwallet_logo_path(key)
        if path is None:
            self._known[key] = None
            return None
        if self._client is None:
            self._client = self.client_factory(self.config)
        try:
            response = await self._client.head(path)
        except httpx.HTTPError as exc:
            log.debug("Logo lookup for %s failed: %s", key, exc)
            return None
        if response.is_server_error:
            return None
        url = str(response.request.url) if response.is_success else None
        self._known[key] = url
        return url

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
