"""Pydantic schemas and cursor utilities for wg_account API."""

import base64
import json
from decimal import Decimal

from pydantic import BaseModel

from src.wg_common.money import money_to_display

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    user_id: str
    balance: Decimal
    balance_display: str

    @classmethod
    def from_balance(cls, user_id: str, balance: Decimal) -> "BalanceResponse":
        return cls(user_id=user_id, balance=balance, balance_display=money_to_display(balance))


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: Decimal
    balance_after: Decimal
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
