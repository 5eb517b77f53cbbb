"""Per-bet view of the custom-odds order book.

Built from the offers loaded under the bet lock; every mutation here is
mirrored to the repository by the engine in the same transaction.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.wg_common.enums import OfferStatus, Side
from src.wg_common.errors import (
    InvalidStateTransitionError,
    OfferNotFoundError,
    PermissionDeniedError,
    SelfMatchError,
    ValidationError,
)
from src.wg_common.money import ZERO
from src.wg_orderbook.domain.models import Acceptance, Offer
from src.wg_orderbook.domain.pricing import counter_stake


@dataclass
class OrderBook:
    bet_id: str
    offers: dict[str, Offer] = field(default_factory=dict)

    @classmethod
    def from_offers(cls, bet_id: str, offers: list[Offer]) -> "OrderBook":
        return cls(bet_id=bet_id, offers={o.id: o for o in offers})

    def add_offer(self, offer: Offer) -> None:
        self.offers[offer.id] = offer

    def get(self, offer_id: str) -> Offer:
        offer = self.offers.get(offer_id)
        if offer is None:
            raise OfferNotFoundError(offer_id)
        return offer

    def active_offers(self, side: Side | None = None) -> list[Offer]:
        """Offers with an unmatched remainder, best odds first, then oldest first."""
        active = [
            o for o in self.offers.values()
            if o.is_active and (side is None or o.prediction is side)
        ]
        active.sort(
            key=lambda o: (
                -o.requested_odds,
                o.created_at.timestamp() if o.created_at else 0.0,
                o.id,
            )
        )
        return active

    def check_acceptable(self, offer_id: str, acceptor_id: str, amount: Decimal) -> Offer:
        """All acceptance guards, without mutating anything."""
        offer = self.get(offer_id)
        if not offer.is_active:
            raise InvalidStateTransitionError(
                f"Offer {offer_id} is {offer.status.value} and cannot be accepted"
            )
        if offer.creator_id == acceptor_id:
            raise SelfMatchError()
        if amount <= ZERO:
            raise ValidationError(f"Accept amount must be positive, got {amount}")
        if amount > offer.remaining_amount:
            raise ValidationError(
                f"Only {offer.remaining_amount} remains on offer {offer_id}, requested {amount}"
            )
        return offer

    def accept(
        self,
        offer_id: str,
        acceptor_id: str,
        amount: Decimal,
        acceptance_id: str,
        now: datetime,
    ) -> Acceptance:
        offer = self.check_acceptable(offer_id, acceptor_id, amount)
        counter = counter_stake(amount, offer.requested_odds)
        offer.remaining_amount -= amount
        offer.status = (
            OfferStatus.FILLED if offer.remaining_amount == ZERO else OfferStatus.PARTIALLY_FILLED
        )
        offer.updated_at = now
        return Acceptance(
            id=acceptance_id,
            bet_id=self.bet_id,
            offer_id=offer.id,
            creator_id=offer.creator_id,
            acceptor_id=acceptor_id,
            creator_side=offer.prediction,
            amount=amount,
            counter_amount=counter,
            requested_odds=offer.requested_odds,
            created_at=now,
        )

    def check_cancellable(self, offer_id: str, user_id: str) -> Offer:
        offer = self.get(offer_id)
        if offer.creator_id != user_id:
            raise PermissionDeniedError("Only the offer's creator can cancel it")
        if not offer.is_active:
            raise InvalidStateTransitionError(
                f"Offer {offer_id} is {offer.status.value} and cannot be cancelled"
            )
        return offer

    def cancel_remainder(self, offer_id: str, now: datetime) -> Decimal:
        """Close the unmatched remainder; returns the amount to refund."""
        offer = self.offers[offer_id]
        refund = offer.remaining_amount
        offer.remaining_amount = ZERO
        offer.status = OfferStatus.CANCELLED
        offer.updated_at = now
        return refund

    def close_all(self, now: datetime) -> list[tuple[Offer, Decimal]]:
        """Cancel every active remainder (bet settled or cancelled)."""
        closed: list[tuple[Offer, Decimal]] = []
        for offer in self.offers.values():
            if offer.is_active:
                closed.append((offer, self.cancel_remainder(offer.id, now)))
        return closed
