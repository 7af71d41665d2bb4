"""WalletRepository: concrete implementation of WalletRepositoryProtocol.

Deposit and withdraw are single atomic UPDATE ... RETURNING statements that
express the delta in SQL, so concurrent requests for the same user serialise
on the row lock instead of overwriting each other. Withdraw returns 0 rows
when the balance would go negative.

update_wallet is a compare-and-swap on `version`: 0 rows means another writer
got there first and the caller must re-read.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from sqlalchemy import TextClause, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wl_common.enums import Currency
from src.wl_wallet.domain.models import Wallet

_RETURNING = "RETURNING id, user_id, balance_eur, balance_usd, balance_rub, version"

# Explicit currency -> column table. Column names are never built from input.
_BALANCE_COLUMN: dict[Currency, str] = {
    Currency.EUR: "balance_eur",
    Currency.USD: "balance_usd",
    Currency.RUB: "balance_rub",
}

# ---------------------------------------------------------------------------
# SQL: wallets
# ---------------------------------------------------------------------------

_CREATE_WALLET_SQL = text(f"""
    INSERT INTO wallets (user_id, balance_eur, balance_usd, balance_rub, version)
    VALUES (:user_id, 0, 0, 0, 0)
    {_RETURNING}
""")

_GET_WALLET_SQL = text("""
    SELECT id, user_id, balance_eur, balance_usd, balance_rub, version
    FROM wallets
    WHERE user_id = :user_id
""")

_UPDATE_WALLET_SQL = text(f"""
    UPDATE wallets
    SET balance_eur = :balance_eur,
        balance_usd = :balance_usd,
        balance_rub = :balance_rub,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND version = :expected_version
    {_RETURNING}
""")

_DELETE_WALLET_SQL = text("""
    DELETE FROM wallets WHERE user_id = :user_id
""")


def _deposit_sql(column: str) -> TextClause:
    return text(f"""
        UPDATE wallets
        SET {column} = {column} + :amount,
            version = version + 1,
            updated_at = NOW()
        WHERE user_id = :user_id
        {_RETURNING}
    """)


def _withdraw_sql(column: str) -> TextClause:
    return text(f"""
        UPDATE wallets
        SET {column} = {column} - :amount,
            version = version + 1,
            updated_at = NOW()
        WHERE user_id = :user_id AND {column} - :amount >= 0
        {_RETURNING}
    """)


_DEPOSIT_SQL: dict[Currency, TextClause] = {
    currency: _deposit_sql(column) for currency, column in _BALANCE_COLUMN.items()
}
_WITHDRAW_SQL: dict[Currency, TextClause] = {
    currency: _withdraw_sql(column) for currency, column in _BALANCE_COLUMN.items()
}


def _row_to_wallet(row: object) -> Wallet:
    return Wallet(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance_eur=row.balance_eur,  # type: ignore[attr-defined]
        balance_usd=row.balance_usd,  # type: ignore[attr-defined]
        balance_rub=row.balance_rub,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
    )


class WalletRepository:
    """Concrete repository: all balance mutations atomic at the SQL level."""

    async def create_wallet(self, db: AsyncSession, user_id: str) -> Wallet:
        result = await db.execute(_CREATE_WALLET_SQL, {"user_id": user_id})
        return _row_to_wallet(result.one())

    async def get_wallet_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Wallet | None:
        result = await db.execute(_GET_WALLET_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_wallet(row) if row else None

    async def deposit(
        self, db: AsyncSession, user_id: str, currency: Currency, amount: float
    ) -> Wallet | None:
        result = await db.execute(
            _DEPOSIT_SQL[currency], {"user_id": user_id, "amount": amount}
        )
        row = result.fetchone()
        return _row_to_wallet(row) if row else None

    async def withdraw(
        self, db: AsyncSession, user_id: str, currency: Currency, amount: float
    ) -> Wallet | None:
        result = await db.execute(
            _WITHDRAW_SQL[currency], {"user_id": user_id, "amount": amount}
        )
        row = result.fetchone()
        return _row_to_wallet(row) if row else None

    async def update_wallet(
        self, db: AsyncSession, wallet: Wallet, expected_version: int
    ) -> Wallet | None:
        result = await db.execute(
            _UPDATE_WALLET_SQL,
            {
                "user_id": wallet.user_id,
                "balance_eur": wallet.balance_eur,
                "balance_usd": wallet.balance_usd,
                "balance_rub": wallet.balance_rub,
                "expected_version": expected_version,
            },
        )
        row = result.fetchone()
        return _row_to_wallet(row) if row else None

    async def delete_wallet(self, db: AsyncSession, user_id: str) -> bool:
        result = await db.execute(_DELETE_WALLET_SQL, {"user_id": user_id})
        return bool(result.rowcount)
