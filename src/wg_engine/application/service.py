# src/wg_engine/application/service.py
from src.wg_account.infrastructure.persistence import AccountLedgerGateway
from src.wg_bet.infrastructure.event_publisher import build_event_publisher
from src.wg_bet.infrastructure.persistence import BetRepository
from src.wg_engine.engine.engine import WageringEngine

_engine: WageringEngine | None = None


def get_wagering_engine() -> WageringEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = WageringEngine(
            repo=BetRepository(),
            ledger=AccountLedgerGateway(),
            events=build_event_publisher(),
        )
    return _engine
