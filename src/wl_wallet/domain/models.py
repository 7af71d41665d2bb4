"""Domain models for wl_wallet: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, replace

from src.wl_common.enums import Currency


@dataclass(frozen=True)
class Wallet:
    id: str
    user_id: str
    balance_eur: float = 0.0
    balance_usd: float = 0.0
    balance_rub: float = 0.0
    version: int = 0

    def balance_of(self, currency: Currency) -> float:
        if currency is Currency.EUR:
            return self.balance_eur
        if currency is Currency.USD:
            return self.balance_usd
        if currency is Currency.RUB:
            return self.balance_rub
        raise ValueError(f"Unsupported currency: {currency}")

    def with_balance(self, currency: Currency, value: float) -> "Wallet":
        """Return a copy with one balance replaced; version is left untouched."""
        if currency is Currency.EUR:
            return replace(self, balance_eur=value)
        if currency is Currency.USD:
            return replace(self, balance_usd=value)
        if currency is Currency.RUB:
            return replace(self, balance_rub=value)
        raise ValueError(f"Unsupported currency: {currency}")

    def balances(self) -> dict[str, float]:
        return {
            Currency.EUR.value: self.balance_eur,
            Currency.USD.value: self.balance_usd,
            Currency.RUB.value: self.balance_rub,
        }


@dataclass
class ExchangeResult:
    message: str
    exchanged_amount: float
    new_balance: dict[str, float]
