"""Vetting collaborator backed by an external risk-analysis webhook."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import Field, ValidationError

from tokenrotor.adapters.feeds import LooseFloat, LooseStr, ProviderBaseModel
from tokenrotor.adapters.http_resilience import ResilienceConfig, ResilientClient
from tokenrotor.config import WEBHOOK_METHODS, RetryPolicy, VettingConfig
from tokenrotor.domain.model import RiskLevel, Tier
from tokenrotor.domain.ports import VettingError, VettingResult
from tokenrotor.domain.vetting import eligible_tier, overall_score, risk_level_for

if TYPE_CHECKING:
    from tokenrotor.domain.model import TokenKey, TokenRecord

log = getLogger(__name__)

# The analysis can take a while: it inspects holders, liquidity locks and dev wallets.
DEFAULT_TIMEOUT_SECONDS = 120.0


class ComponentScores(ProviderBaseModel):
    distribution: LooseFloat = None
    liquidity: LooseFloat = None
    dev_abandonment: LooseFloat = Field(default=None, alias="devAbandonment")
    technical: LooseFloat = None

    def present(self) -> dict[str, float]:
        return {name: value for name, value in self.model_dump().items() if value is not None}


class VettingResponse(ProviderBaseModel):
    component_scores: ComponentScores = Field(
        default_factory=ComponentScores, alias="componentScores"
    )
    overall_score: LooseFloat = Field(default=None, alias="overallScore")
    risk_level: LooseStr = Field(default=None, alias="riskLevel")
    eligible_tier: LooseStr = Field(default=None, alias="eligibleTier")
    lp_locked_percent: LooseFloat = Field(default=None, alias="lpLockedPercent")
    all_flags: list[str] = Field(default_factory=list, alias="allFlags")

    def to_result(self, snapshot: TokenRecord) -> VettingResult:
        """Fill gaps the analysis left with the local scoring rules."""

        components = self.component_scores.present()
        score = self.overall_score if self.overall_score is not None else overall_score(components)
        if score is None:
            raise VettingError(f"No risk score returned for {snapshot.key}")
        tier = _parse_tier(self.eligible_tier)
        if tier is None:
            tier = eligible_tier(
                score=score,
                age_days=snapshot.market.age_days,
                liquidity_usd=snapshot.market.liquidity_usd,
                lp_locked_percent=self.lp_locked_percent,
            )
        return VettingResult(
            risk_score=score,
            tier=tier,
            risk_level=_parse_risk_level(self.risk_level) or risk_level_for(score),
            component_scores=components,
            flags=tuple(self.all_flags),
        )


def _parse_tier(value: str | None) -> Tier | None:
    if value is None:
        return None
    try:
        return Tier(value.lower())
    except ValueError:
        log.warning("Ignoring unknown tier %r from vetting service", value)
        return None


def _parse_risk_level(value: str | None) -> RiskLevel | None:
    if value is None:
        return None
    try:
        return RiskLevel(value.lower())
    except ValueError:
        return None


def vetting_request(key: TokenKey, snapshot: TokenRecord) -> dict[str, object]:
    market = snapshot.market
    return {
        "tokenAddress": key.address,
        "chain": key.chain.value,
        "symbol": snapshot.symbol,
        "name": snapshot.name,
        "liquidityUsd": market.liquidity_usd,
        "marketCap": market.market_cap,
        "holders": market.holders,
        "ageDays": market.age_days,
    }


def _webhook_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="vetting",
        timeout_seconds=DEFAULT_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=1, allowed_methods=WEBHOOK_METHODS),
    )


@dataclass(slots=True)
class WebhookVettingCollaborator:
    config: VettingConfig
    resilience: ResilienceConfig = field(default_factory=_webhook_resilience)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=ResilientClient
    )

    def __post_init__(self) -> None:
        if not self.config.webhook_url:
            raise ValueError("WebhookVettingCollaborator requires VETTING_WEBHOOK_URL")

    async def vet(self, key: TokenKey, snapshot: TokenRecord) -> VettingResult:
        url = self.config.webhook_url or ""
        try:
            async with self.client_factory(self.resilience) as client:
                response = await client.post(url, json=vetting_request(key, snapshot))
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise VettingError(f"Vetting request for {key} failed: {exc}") from exc

        if isinstance(payload, list) and payload:
            # Workflow webhooks may wrap the result in a one-element list.
            payload = payload[0]
        try:
            parsed = VettingResponse.model_validate(payload)
        except ValidationError as exc:
            raise VettingError(f"Malformed vetting response for {key}") from exc
        return parsed.to_result(snapshot)
