# src/wg_orderbook/application/schemas.py
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from src.wg_bet.application.schemas import DecimalValue, Money
from src.wg_common.enums import OfferStatus, Side
from src.wg_orderbook.domain.models import Acceptance, Offer


class CreateOfferRequest(BaseModel):
    prediction: Side
    stake_amount: Money
    requested_odds: DecimalValue


class AcceptOfferRequest(BaseModel):
    amount: Money


class OfferResponse(BaseModel):
    id: str
    bet_id: str
    creator_id: str
    prediction: Side
    stake_amount: Decimal
    requested_odds: Decimal
    remaining_amount: Decimal
    matched_amount: Decimal
    status: OfferStatus
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_offer(cls, offer: Offer) -> "OfferResponse":
        return cls(
            id=offer.id,
            bet_id=offer.bet_id,
            creator_id=offer.creator_id,
            prediction=offer.prediction,
            stake_amount=offer.stake_amount,
            requested_odds=offer.requested_odds,
            remaining_amount=offer.remaining_amount,
            matched_amount=offer.matched_amount,
            status=offer.status,
            created_at=offer.created_at,
            updated_at=offer.updated_at,
        )


class OfferListResponse(BaseModel):
    items: list[OfferResponse]


class AcceptanceResponse(BaseModel):
    id: str
    bet_id: str
    offer_id: str
    creator_id: str
    acceptor_id: str
    creator_side: Side
    acceptor_side: Side
    amount: Decimal
    counter_amount: Decimal
    requested_odds: Decimal
    created_at: datetime | None

    @classmethod
    def from_acceptance(cls, a: Acceptance) -> "AcceptanceResponse":
        return cls(
            id=a.id,
            bet_id=a.bet_id,
            offer_id=a.offer_id,
            creator_id=a.creator_id,
            acceptor_id=a.acceptor_id,
            creator_side=a.creator_side,
            acceptor_side=a.acceptor_side,
            amount=a.amount,
            counter_amount=a.counter_amount,
            requested_odds=a.requested_odds,
            created_at=a.created_at,
        )
