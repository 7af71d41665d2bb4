"""HTTP client for the exchanger service (the exchange-rate source).

Endpoints:
    GET /rates                                  -> {"rates": {"EUR": 1.0, ...}}
    GET /rate?from_currency=EUR&to_currency=USD -> {"rate": 0.9}
"""

import logging

import httpx

from src.wl_common.errors import UpstreamServiceError
from src.wl_common.http_client import json_body, request_with_retries

logger = logging.getLogger(__name__)

_SERVICE = "exchanger"


class HttpExchangeRateClient:
    def __init__(self, client: httpx.AsyncClient, retries: int) -> None:
        self._client = client
        self._retries = retries

    async def get_exchange_rates(self) -> dict[str, float]:
        response = await request_with_retries(
            self._client, "GET", "/rates", service=_SERVICE, retries=self._retries
        )
        payload = self._ok_json(response)
        try:
            return {str(code): float(rate) for code, rate in payload["rates"].items()}
        except (KeyError, AttributeError, TypeError, ValueError) as exc:
            raise UpstreamServiceError(_SERVICE, f"bad rates payload: {exc}") from exc

    async def get_exchange_rate_for_currency(
        self, from_currency: str, to_currency: str
    ) -> float:
        response = await request_with_retries(
            self._client,
            "GET",
            "/rate",
            service=_SERVICE,
            retries=self._retries,
            params={"from_currency": from_currency, "to_currency": to_currency},
        )
        payload = self._ok_json(response)
        try:
            return float(payload["rate"])
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamServiceError(_SERVICE, f"bad rate payload: {exc}") from exc

    @staticmethod
    def _ok_json(response: httpx.Response) -> dict:
        if response.status_code != 200:
            logger.error(
                "exchanger %s returned %d", response.request.url.path, response.status_code
            )
            raise UpstreamServiceError(_SERVICE, f"HTTP {response.status_code}")
        return json_body(response, _SERVICE)
