"""Ledger Gateway and account read protocols.

The engine only ever debits or credits a user balance; each call is atomic on
its own. Unit tests inject an in-memory ledger that conforms to this Protocol.
"""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_account.domain.models import Account, LedgerEntry


class LedgerGatewayProtocol(Protocol):
    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        entry_type: str,
        reference_id: str,
    ) -> None:
        """Remove ``amount`` from the user's balance or raise InsufficientFundsError."""
        ...

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: Decimal,
        entry_type: str,
        reference_id: str,
    ) -> None: ...


class AccountRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
