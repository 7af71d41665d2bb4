"""wl_wallet REST API: balance, deposit, withdraw and exchange endpoints.

All endpoints require a Bearer token issued by the identity service.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wl_common.database import get_db_session
from src.wl_common.errors import InvalidRequestError
from src.wl_common.response import ApiResponse, success_response
from src.wl_gateway.auth.dependencies import get_current_user_id
from src.wl_wallet.api.dependencies import get_wallet_service
from src.wl_wallet.application.schemas import (
    BalanceResponse,
    ChangeBalanceRequest,
    ChangeBalanceResponse,
    CurrenciesResponse,
    ExchangeRatesResponse,
    ExchangeRequest,
    ExchangeResponse,
)
from src.wl_wallet.application.service import WalletApplicationService

wallet_router = APIRouter(prefix="/wallet", tags=["wallet"])
exchange_router = APIRouter(prefix="/exchange", tags=["exchange"])

UserId = Annotated[str, Depends(get_current_user_id)]
Db = Annotated[AsyncSession, Depends(get_db_session)]
Service = Annotated[WalletApplicationService, Depends(get_wallet_service)]


def _with_request_id(resp: ApiResponse, request: Request) -> ApiResponse:
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@wallet_router.get("/balance")
async def get_balance(
    user_id: UserId, db: Db, service: Service, request: Request
) -> ApiResponse:
    wallet = await service.get_balance(db, user_id)
    data = BalanceResponse(balance=CurrenciesResponse.from_wallet(wallet))
    return _with_request_id(success_response(data.model_dump()), request)


@wallet_router.post("/deposit")
async def deposit(
    body: ChangeBalanceRequest,
    user_id: UserId,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    wallet = await service.deposit(db, user_id, body.amount, body.currency)
    data = ChangeBalanceResponse(
        message="Account topped up successfully",
        new_balance=CurrenciesResponse.from_wallet(wallet),
    )
    return _with_request_id(success_response(data.model_dump()), request)


@wallet_router.post("/withdraw")
async def withdraw(
    body: ChangeBalanceRequest,
    user_id: UserId,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    wallet = await service.withdraw(db, user_id, body.amount, body.currency)
    data = ChangeBalanceResponse(
        message="Withdrawal successful",
        new_balance=CurrenciesResponse.from_wallet(wallet),
    )
    return _with_request_id(success_response(data.model_dump()), request)


@exchange_router.get("/rates")
async def get_exchange_rates(
    _user_id: UserId, service: Service, request: Request
) -> ApiResponse:
    rates = await service.get_exchange_rates()
    data = ExchangeRatesResponse(rates=rates)
    return _with_request_id(success_response(data.model_dump()), request)


@exchange_router.post("")
async def exchange(
    body: ExchangeRequest,
    user_id: UserId,
    db: Db,
    service: Service,
    request: Request,
) -> ApiResponse:
    if body.from_currency == body.to_currency:
        raise InvalidRequestError()
    result = await service.exchange_currency(
        db, user_id, body.amount, body.from_currency, body.to_currency
    )
    data = ExchangeResponse.from_result(result)
    return _with_request_id(success_response(data.model_dump()), request)
