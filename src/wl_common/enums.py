"""Global enums: must match DB columns exactly."""

from enum import Enum


class Currency(str, Enum):
    EUR = "EUR"
    USD = "USD"
    RUB = "RUB"


SUPPORTED_CURRENCIES: frozenset[str] = frozenset(c.value for c in Currency)
