"""Port for pushing listing changes to realtime clients."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from tokenrotor.domain.model import EventType, TokenRecord


@runtime_checkable
class Notifier(Protocol):
    def publish(self, event_type: EventType, record: TokenRecord) -> None: ...


__all__ = ["Notifier"]
