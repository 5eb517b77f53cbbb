"""Event publishers — transactional outbox table or Redis pub/sub.

The outbox row is written on the caller's session, so an event exists exactly
when the state change it describes was committed. The Redis publisher fans
out immediately and is best-effort: a consumer may see an event for an
operation that later rolled back.
"""
import json
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wg_bet.domain.events import DomainEvent, EventPublisherProtocol
from src.wg_common.redis_client import get_redis

logger = logging.getLogger(__name__)

_INSERT_EVENT_SQL = text("""
    INSERT INTO bet_events (bet_id, event_type, user_id, payload, occurred_at)
    VALUES (:bet_id, :event_type, :user_id, CAST(:payload AS JSONB), :occurred_at)
""")


class OutboxEventPublisher:
    """Insert one row into bet_events within the caller's transaction."""

    async def publish(self, db: AsyncSession, event: DomainEvent) -> None:
        await db.execute(
            _INSERT_EVENT_SQL,
            {
                "bet_id": event.bet_id,
                "event_type": event.event_type.value,
                "user_id": event.user_id,
                "payload": json.dumps(event.payload, default=str),
                "occurred_at": event.occurred_at,
            },
        )


class RedisEventPublisher:
    def __init__(self, channel: str | None = None) -> None:
        self._channel = channel or settings.EVENTS_CHANNEL

    async def publish(self, db: AsyncSession, event: DomainEvent) -> None:
        redis = await get_redis()
        await redis.publish(self._channel, json.dumps(event.to_dict(), default=str))
        logger.debug("Published %s for bet %s", event.event_type.value, event.bet_id)


def build_event_publisher(backend: str | None = None) -> EventPublisherProtocol:
    backend = backend or settings.EVENT_BACKEND
    if backend == "redis":
        return RedisEventPublisher()
    return OutboxEventPublisher()
