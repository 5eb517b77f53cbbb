"""Participation — one user's stake in a pooled bet."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.wg_common.enums import Side


@dataclass
class Participation:
    id: str
    bet_id: str
    user_id: str
    prediction: Side
    amount: Decimal
    payout: Decimal | None = None    # None until the bet settles
    claimed: bool = False            # permanently True once paid
    claimed_at: datetime | None = None
    created_at: datetime | None = None
