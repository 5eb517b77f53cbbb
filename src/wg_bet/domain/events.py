"""Domain events emitted by the wagering engine.

Consumed by an external notification dispatcher; delivery and formatting are
not the engine's concern. Events are written inside the same transaction as
the state change they describe (transactional outbox) or fanned out over
Redis, depending on EVENT_BACKEND.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_common.datetime_utils import utc_now
from src.wg_common.enums import EventType


@dataclass(frozen=True)
class DomainEvent:
    event_type: EventType
    bet_id: str
    user_id: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "bet_id": self.bet_id,
            "user_id": self.user_id,
            "payload": self.payload,
            "occurred_at": self.occurred_at.isoformat(),
        }


class EventPublisherProtocol(Protocol):
    async def publish(self, db: AsyncSession, event: DomainEvent) -> None: ...
