"""Exchange-rate source contract.

Implementations raise UpstreamServiceError when the source cannot answer.
"""

from typing import Protocol


class ExchangeRateSourceProtocol(Protocol):
    async def get_exchange_rates(self) -> dict[str, float]: ...

    async def get_exchange_rate_for_currency(
        self, from_currency: str, to_currency: str
    ) -> float: ...
