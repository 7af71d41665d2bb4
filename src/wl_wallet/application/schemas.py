"""Pydantic request/response schemas for the wallet and exchange APIs.

Currency fields are plain strings here; the service owns the supported set
and rejects anything else with InvalidAmountOrCurrencyError.
"""

from pydantic import BaseModel, Field

from src.wl_wallet.domain.models import ExchangeResult, Wallet

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ChangeBalanceRequest(BaseModel):
    amount: float = Field(..., gt=0, description="Amount to deposit or withdraw")
    currency: str = Field(..., description="One of USD, EUR, RUB")


class ExchangeRequest(BaseModel):
    from_currency: str = Field(..., description="One of USD, EUR, RUB")
    to_currency: str = Field(..., description="One of USD, EUR, RUB")
    amount: float = Field(..., gt=0)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CurrenciesResponse(BaseModel):
    EUR: float
    USD: float
    RUB: float

    @classmethod
    def from_wallet(cls, wallet: Wallet) -> "CurrenciesResponse":
        return cls(**wallet.balances())


class BalanceResponse(BaseModel):
    balance: CurrenciesResponse


class ChangeBalanceResponse(BaseModel):
    message: str
    new_balance: CurrenciesResponse


class ExchangeResponse(BaseModel):
    message: str
    exchanged_amount: float
    new_balance: dict[str, float]

    @classmethod
    def from_result(cls, result: ExchangeResult) -> "ExchangeResponse":
        return cls(
            message=result.message,
            exchanged_amount=result.exchanged_amount,
            new_balance=result.new_balance,
        )


class ExchangeRatesResponse(BaseModel):
    rates: dict[str, float]
