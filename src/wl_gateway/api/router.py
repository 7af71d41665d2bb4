"""Auth API router: register, login.

Both endpoints proxy to the identity service. Registration also creates the
user's zero-balance wallet once the identity service has assigned an id.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.wl_common.database import get_db_session
from src.wl_common.errors import SomethingWentWrongError, UpstreamServiceError
from src.wl_common.response import ApiResponse, success_response
from src.wl_gateway.identity.client import IdentityClient
from src.wl_gateway.schemas import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
)
from src.wl_wallet.api.dependencies import get_wallet_service
from src.wl_wallet.application.service import WalletApplicationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def get_identity_client(request: Request) -> IdentityClient:
    return request.app.state.identity_client


def _get_request_id(request: Request) -> str:
    """Read request_id injected by RequestLogMiddleware, fallback if absent."""
    return getattr(request.state, "request_id", "req_unknown")


@router.post(
    "/register",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="User registration",
)
async def register(
    request: Request,
    body: RegisterRequest,
    identity: Annotated[IdentityClient, Depends(get_identity_client)],
    wallets: Annotated[WalletApplicationService, Depends(get_wallet_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    try:
        user_id = await identity.register(body.email, body.username, body.password)
    except UpstreamServiceError as exc:
        logger.error("register: identity service failed: %s", exc)
        raise SomethingWentWrongError() from None

    await wallets.create_user_wallet(db, user_id)

    resp = success_response(
        RegisterResponse(user_id=user_id).model_dump(),
        message="User registered successfully",
    )
    resp.request_id = _get_request_id(request)
    return resp


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="User login",
)
async def login(
    request: Request,
    body: LoginRequest,
    identity: Annotated[IdentityClient, Depends(get_identity_client)],
) -> ApiResponse:
    try:
        token = await identity.login(body.username, body.password)
    except UpstreamServiceError as exc:
        logger.error("login: identity service failed: %s", exc)
        raise SomethingWentWrongError() from None

    resp = success_response(LoginResponse(token=token).model_dump(), message="Login successful")
    resp.request_id = _get_request_id(request)
    return resp
