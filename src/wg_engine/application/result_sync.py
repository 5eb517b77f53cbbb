"""Periodic winner declaration from an external contest-result feed.

The feed itself (bracket provider client) lives outside this service; it only
has to answer "is this match finished, and who won?". A finished match whose
winner is neither contestant (draw, disqualification, unknown id) voids the bet.
"""
import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wg_bet.domain.models import Bet
from src.wg_common.database import async_session_factory
from src.wg_common.enums import BetStatus, Winner
from src.wg_common.errors import AppError
from src.wg_common.identity import Caller
from src.wg_engine.engine.engine import WageringEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContestResult:
    completed: bool
    winner_contestant_id: str | None = None


class ResultFeedProtocol(Protocol):
    async def get_result(self, bet: Bet) -> ContestResult | None: ...


def winner_from_result(bet: Bet, result: ContestResult) -> Winner | None:
    """Map a feed result onto a bet outcome; None while the match is still running."""
    if not result.completed:
        return None
    if result.winner_contestant_id is not None:
        if result.winner_contestant_id == bet.contestant1.id:
            return Winner.CONTESTANT1
        if result.winner_contestant_id == bet.contestant2.id:
            return Winner.CONTESTANT2
    return Winner.VOID


class ResultSyncService:
    def __init__(
        self,
        engine: WageringEngine,
        feed: ResultFeedProtocol,
        session_factory: Callable[[], AsyncSession] = async_session_factory,
    ) -> None:
        self._engine = engine
        self._feed = feed
        self._session_factory = session_factory
        self._running = False

    async def sync_once(self) -> int:
        """Check every open/in-progress bet once. Returns how many were settled."""
        if self._running:
            logger.info("Result sync already in progress; skipping")
            return 0
        self._running = True
        try:
            async with self._session_factory() as db:
                bets = await self._engine.list_bets(
                    db, statuses=[BetStatus.OPEN, BetStatus.IN_PROGRESS], limit=1000
                )
            settled = 0
            for bet in bets:
                if await self._sync_bet(bet):
                    settled += 1
            logger.info("Result sync checked %d bets, settled %d", len(bets), settled)
            return settled
        finally:
            self._running = False

    async def _sync_bet(self, bet: Bet) -> bool:
        system = Caller.system()
        reason = "result feed"
        try:
            result = await self._feed.get_result(bet)
            if result is None:
                return False
            winner = winner_from_result(bet, result)
            if winner is None:
                return False
            async with self._session_factory() as db:
                if bet.status is BetStatus.OPEN:
                    await self._engine.start_bet(db, system, bet.id, reason)
                await self._engine.declare_winner(db, system, bet.id, winner, reason)
        except AppError as exc:
            # Disputed or concurrently settled bets are left for the next pass.
            logger.warning("Result sync skipped bet %s: [%d] %s", bet.id, exc.code, exc.message)
            return False
        except Exception:
            logger.exception("Result sync failed for bet %s", bet.id)
            return False
        return True

    async def run_forever(self, interval_seconds: int | None = None) -> None:
        interval = interval_seconds or settings.RESULT_SYNC_INTERVAL_SECONDS
        logger.info("Result sync every %d seconds", interval)
        while True:
            try:
                await self.sync_once()
            except Exception:
                logger.exception("Result sync pass failed")
            await asyncio.sleep(interval)
