"""HTTP client for the external identity service.

Endpoints:
    POST /register {email, username, password} -> {"user_id": "..."}
    POST /login    {username, password}        -> {"token": "..."}

Expected rejections are mapped to AppErrors here; transport failures and
unexpected statuses raise UpstreamServiceError.
"""

import logging

import httpx

from src.wl_common.errors import (
    InvalidCredentialsError,
    InvalidRegistrationError,
    UpstreamServiceError,
    UserAlreadyExistsError,
)
from src.wl_common.http_client import json_body, request_with_retries

logger = logging.getLogger(__name__)

_SERVICE = "identity"


class IdentityClient:
    def __init__(self, client: httpx.AsyncClient, retries: int) -> None:
        self._client = client
        self._retries = retries

    async def register(self, email: str, username: str, password: str) -> str:
        """Register a user and return the id the identity service assigned."""
        response = await request_with_retries(
            self._client,
            "POST",
            "/register",
            service=_SERVICE,
            retries=self._retries,
            json={"email": email, "username": username, "password": password},
        )
        if response.status_code == 409:
            raise UserAlreadyExistsError()
        if response.status_code in (400, 422):
            raise InvalidRegistrationError()
        payload = self._ok_json(response, "register")
        user_id = payload.get("user_id")
        if not user_id:
            raise UpstreamServiceError(_SERVICE, "register response without user_id")
        return str(user_id)

    async def login(self, username: str, password: str) -> str:
        """Authenticate and return the token issued by the identity service."""
        response = await request_with_retries(
            self._client,
            "POST",
            "/login",
            service=_SERVICE,
            retries=self._retries,
            json={"username": username, "password": password},
        )
        if response.status_code in (400, 401, 422):
            raise InvalidCredentialsError()
        payload = self._ok_json(response, "login")
        token = payload.get("token")
        if not token:
            raise UpstreamServiceError(_SERVICE, "login response without token")
        return str(token)

    @staticmethod
    def _ok_json(response: httpx.Response, op: str) -> dict:
        if response.status_code not in (200, 201):
            logger.error("identity %s returned %d", op, response.status_code)
            raise UpstreamServiceError(_SERVICE, f"{op}: HTTP {response.status_code}")
        return json_body(response, _SERVICE)
