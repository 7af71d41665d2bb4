"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock or an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wl_common.enums import Currency
from src.wl_wallet.domain.models import Wallet


class WalletRepositoryProtocol(Protocol):
    async def create_wallet(self, db: AsyncSession, user_id: str) -> Wallet: ...

    async def get_wallet_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Wallet | None: ...

    async def deposit(
        self, db: AsyncSession, user_id: str, currency: Currency, amount: float
    ) -> Wallet | None:
        """Atomically add amount. None means no wallet row for the user."""
        ...

    async def withdraw(
        self, db: AsyncSession, user_id: str, currency: Currency, amount: float
    ) -> Wallet | None:
        """Atomically subtract amount. None means no row or insufficient balance."""
        ...

    async def update_wallet(
        self, db: AsyncSession, wallet: Wallet, expected_version: int
    ) -> Wallet | None:
        """Write all balances if the stored version still matches. None on conflict."""
        ...

    async def delete_wallet(self, db: AsyncSession, user_id: str) -> bool: ...
