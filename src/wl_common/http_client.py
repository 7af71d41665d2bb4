"""Shared plumbing for outbound HTTP calls to upstream services.

Retries live here, at the client, never in the services that call it:
transport failures and gateway-class statuses are retried with a short
linear back-off, everything else is returned to the caller as-is.
"""

import asyncio
import logging
from typing import Any

import httpx

from config.settings import settings
from src.wl_common.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({502, 503, 504})
RETRY_DELAY_MS = 50


def build_client(base_url: str) -> httpx.AsyncClient:
    """AsyncClient with the configured per-try timeout."""
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=settings.CLIENT_TIMEOUT_SECONDS,
    )


async def request_with_retries(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    service: str,
    retries: int,
    **kwargs: Any,
) -> httpx.Response:
    last_error = "no attempts made"
    for attempt in range(1, retries + 1):
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            last_error = str(exc) or exc.__class__.__name__
            logger.warning(
                "%s %s %s failed (attempt %d/%d): %s",
                service, method, url, attempt, retries, last_error,
            )
        else:
            if response.status_code not in RETRYABLE_STATUS:
                return response
            last_error = f"HTTP {response.status_code}"
            logger.warning(
                "%s %s %s returned %d (attempt %d/%d)",
                service, method, url, response.status_code, attempt, retries,
            )
        if attempt < retries:
            await asyncio.sleep(RETRY_DELAY_MS * attempt / 1000.0)

    raise UpstreamServiceError(service, f"gave up after {retries} attempts: {last_error}")


def json_body(response: httpx.Response, service: str) -> dict[str, Any]:
    """Decode a JSON object body, raising UpstreamServiceError on anything else."""
    try:
        payload = response.json()
    except ValueError as exc:
        raise UpstreamServiceError(service, f"malformed response body: {exc}") from exc
    if not isinstance(payload, dict):
        raise UpstreamServiceError(service, "response body is not a JSON object")
    return payload
