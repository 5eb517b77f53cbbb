"""Order book domain models — offers and the acceptances that fill them."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.wg_common.enums import OfferStatus, Side


@dataclass
class Offer:
    id: str
    bet_id: str
    creator_id: str
    prediction: Side
    stake_amount: Decimal
    requested_odds: Decimal      # decimal odds, > 1
    remaining_amount: Decimal    # unmatched part of stake_amount
    status: OfferStatus = OfferStatus.OPEN
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status in (OfferStatus.OPEN, OfferStatus.PARTIALLY_FILLED)

    @property
    def matched_amount(self) -> Decimal:
        return self.stake_amount - self.remaining_amount


@dataclass
class Acceptance:
    """A fixed-odds contract between an offer's creator and one acceptor.

    ``amount`` is the slice of the creator's stake being matched;
    ``counter_amount`` is what the acceptor escrowed against it.
    """

    id: str
    bet_id: str
    offer_id: str
    creator_id: str
    acceptor_id: str
    creator_side: Side
    amount: Decimal
    counter_amount: Decimal
    requested_odds: Decimal
    creator_payout: Decimal | None = None
    acceptor_payout: Decimal | None = None
    creator_claimed: bool = False
    acceptor_claimed: bool = False
    created_at: datetime | None = None

    @property
    def acceptor_side(self) -> Side:
        return self.creator_side.opposite

    @property
    def any_claimed(self) -> bool:
        return self.creator_claimed or self.acceptor_claimed
