"""Rotation, vetting and scheduling settings."""

from __future__ import annotations

from dataclasses import dataclass, field

from tokenrotor.domain.model import Chain, TokenKey

from .env import env_float, env_int, optional_env_var
from .errors import InvalidConfigurationError

DEFAULT_CAPACITY = 25
DEFAULT_VETTING_BATCH_SIZE = 20
DEFAULT_VETTING_DELAY_SECONDS = 2.0

DEFAULT_REFRESH_INTERVAL_SECONDS = 600.0
DEFAULT_VETTING_INTERVAL_SECONDS = 600.0
DEFAULT_ROTATION_INTERVAL_SECONDS = 86_400.0
DEFAULT_STALE_CLAIM_SECONDS = 1_800.0


@dataclass(frozen=True, slots=True)
class RotationConfig:
    capacity: int = DEFAULT_CAPACITY
    pinned: frozenset[TokenKey] = field(default_factory=frozenset)
    min_age_days: float | None = None


@dataclass(frozen=True, slots=True)
class VettingConfig:
    webhook_url: str | None = None
    batch_size: int = DEFAULT_VETTING_BATCH_SIZE
    dispatch_delay_seconds: float = DEFAULT_VETTING_DELAY_SECONDS
    max_attempts: int | None = None
    stale_claim_seconds: float = DEFAULT_STALE_CLAIM_SECONDS


@dataclass(frozen=True, slots=True)
class NotifierConfig:
    webhook_url: str | None = None
    timeout_seconds: float = 10.0


@dataclass(frozen=True, slots=True)
class ScheduleConfig:
    refresh_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    vetting_seconds: float = DEFAULT_VETTING_INTERVAL_SECONDS
    rotation_seconds: float = DEFAULT_ROTATION_INTERVAL_SECONDS
    release_seconds: float = DEFAULT_STALE_CLAIM_SECONDS


def parse_token_key(value: str, *, name: str = "token") -> TokenKey:
    """Parse one ``CHAIN:address`` pair."""

    chain_name, sep, address = value.strip().partition(":")
    if not sep or not address.strip():
        raise InvalidConfigurationError(name, value, "CHAIN:address")
    try:
        chain = Chain(chain_name.strip().upper())
    except ValueError as exc:
        raise InvalidConfigurationError(name, value, "a known chain") from exc
    return TokenKey(chain=chain, address=address.strip())


def parse_pinned(value: str | None) -> frozenset[TokenKey]:
    """Parse ``CHAIN:address`` pairs separated by commas."""

    if not value:
        return frozenset()
    items = (item for item in value.split(",") if item.strip())
    return frozenset(parse_token_key(item, name="TOKENROTOR_PINNED") for item in items)


def get_rotation_config() -> RotationConfig:
    capacity = env_int("TOKENROTOR_CAPACITY", DEFAULT_CAPACITY)
    if capacity is None or capacity < 1:
        raise InvalidConfigurationError("TOKENROTOR_CAPACITY", str(capacity), "a positive integer")
    pinned = parse_pinned(optional_env_var("TOKENROTOR_PINNED"))
    if len(pinned) > capacity:
        raise InvalidConfigurationError(
            "TOKENROTOR_PINNED",
            f"{len(pinned)} tokens",
            f"at most TOKENROTOR_CAPACITY={capacity} tokens",
        )
    return RotationConfig(
        capacity=capacity,
        pinned=pinned,
        min_age_days=env_float("TOKENROTOR_MIN_AGE_DAYS", None),
    )


def get_vetting_config() -> VettingConfig:
    return VettingConfig(
        webhook_url=optional_env_var("VETTING_WEBHOOK_URL"),
        batch_size=env_int("TOKENROTOR_VETTING_BATCH", DEFAULT_VETTING_BATCH_SIZE)
        or DEFAULT_VETTING_BATCH_SIZE,
        dispatch_delay_seconds=env_float(
            "TOKENROTOR_VETTING_DELAY_SECONDS", DEFAULT_VETTING_DELAY_SECONDS
        )
        or 0.0,
        max_attempts=env_int("TOKENROTOR_VETTING_MAX_ATTEMPTS", None),
    )


def get_schedule_config() -> ScheduleConfig:
    return ScheduleConfig(
        refresh_seconds=env_float("TOKENROTOR_REFRESH_SECONDS", DEFAULT_REFRESH_INTERVAL_SECONDS)
        or DEFAULT_REFRESH_INTERVAL_SECONDS,
        vetting_seconds=env_float("TOKENROTOR_VETTING_SECONDS", DEFAULT_VETTING_INTERVAL_SECONDS)
        or DEFAULT_VETTING_INTERVAL_SECONDS,
        rotation_seconds=env_float(
            "TOKENROTOR_ROTATION_SECONDS", DEFAULT_ROTATION_INTERVAL_SECONDS
        )
        or DEFAULT_ROTATION_INTERVAL_SECONDS,
    )


def get_notifier_config() -> NotifierConfig:
    return NotifierConfig(webhook_url=optional_env_var("NOTIFIER_WEBHOOK_URL"))
