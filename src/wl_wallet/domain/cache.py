"""Exchange-rate cache contract and key layout.

Key formats are shared with other instances of the service and must not change:
  - "exchange_rates"                whole table, JSON {"rates": {...}}
  - "exchange_rate:<FROM>:<TO>"     single pair, decimal string

The two entries are independent; neither invalidates the other, so the table
and a pair may disagree for at most one TTL.
"""

from typing import Protocol

RATES_TABLE_KEY = "exchange_rates"


def pair_rate_key(from_currency: str, to_currency: str) -> str:
    return f"exchange_rate:{from_currency}:{to_currency}"


class RateCacheProtocol(Protocol):
    async def get_value(self, key: str) -> str | None:
        """Return the stored string, or None on a miss."""
        ...

    async def set_value(self, key: str, value: str, ttl_seconds: int) -> None: ...
