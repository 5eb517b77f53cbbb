"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class BetStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MarketType(str, Enum):
    POOL = "pool"
    ORDER_BOOK = "order_book"


class Side(str, Enum):
    CONTESTANT1 = "contestant1"
    CONTESTANT2 = "contestant2"

    @property
    def opposite(self) -> "Side":
        return Side.CONTESTANT2 if self is Side.CONTESTANT1 else Side.CONTESTANT1


class Winner(str, Enum):
    CONTESTANT1 = "contestant1"
    CONTESTANT2 = "contestant2"
    VOID = "void"

    @property
    def side(self) -> Side | None:
        """Winning side, or None for a void (no-contest) outcome."""
        if self is Winner.VOID:
            return None
        return Side(self.value)


class OfferStatus(str, Enum):
    OPEN = "open"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    CANCELLED = "cancelled"


class LedgerEntryType(str, Enum):
    # Escrow in (user pays the engine)
    STAKE = "STAKE"
    OFFER_ESCROW = "OFFER_ESCROW"
    ACCEPT_ESCROW = "ACCEPT_ESCROW"
    # Escrow out (engine pays the user)
    OFFER_REFUND = "OFFER_REFUND"
    CANCEL_REFUND = "CANCEL_REFUND"
    PAYOUT = "PAYOUT"
    # Platform fee account
    FEE_REVENUE = "FEE_REVENUE"
    FEE_REVERSAL = "FEE_REVERSAL"


class EventType(str, Enum):
    BET_PLACED = "bet_placed"
    BET_COMPLETED = "bet_completed"
    BET_CANCELLED = "bet_cancelled"
    OFFER_ACCEPTED = "offer_accepted"
    DISPUTE_RAISED = "dispute_raised"
    WINNINGS_CLAIMABLE = "winnings_claimable"


class AuditAction(str, Enum):
    FORCE_START = "FORCE_START"
    FORCE_CANCEL = "FORCE_CANCEL"
    DECLARE_WINNER = "DECLARE_WINNER"
    OVERRIDE_WINNER = "OVERRIDE_WINNER"
    DISPUTE_RAISED = "DISPUTE_RAISED"
    DISPUTE_REDECLARED = "DISPUTE_REDECLARED"
    DISPUTE_CANCELLED = "DISPUTE_CANCELLED"
