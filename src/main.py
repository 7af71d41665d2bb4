"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8080
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.wl_common.database import engine
from src.wl_common.errors import AppError
from src.wl_common.http_client import build_client
from src.wl_common.logging_config import setup_logging
from src.wl_common.redis_client import close_redis, get_redis
from src.wl_common.response import error_response
from src.wl_gateway.api.router import router as auth_router
from src.wl_gateway.identity.client import IdentityClient
from src.wl_gateway.middleware.request_log import RequestLogMiddleware
from src.wl_wallet.api.router import exchange_router, wallet_router
from src.wl_wallet.application.service import WalletApplicationService
from src.wl_wallet.infrastructure.cache import RedisRateCache
from src.wl_wallet.infrastructure.exchange_client import HttpExchangeRateClient

logger = logging.getLogger(__name__)

VALIDATION_ERROR_CODE = 9004


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, build upstream clients. Shutdown: dispose."""
    setup_logging(settings.LOG_ENV)
    logger.info("Initializing application")

    logger.info("Connecting to PostgreSQL")
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("Connecting to Redis")
    redis = await get_redis()
    await redis.ping()

    exchanger_http = build_client(settings.EXCHANGE_SERVICE_URL)
    identity_http = build_client(settings.AUTH_SERVICE_URL)
    app.state.wallet_service = WalletApplicationService(
        cache=RedisRateCache(redis),
        rate_source=HttpExchangeRateClient(exchanger_http, settings.CLIENT_RETRIES),
    )
    app.state.identity_client = IdentityClient(identity_http, settings.CLIENT_RETRIES)
    logger.info("Start HTTP server")
    yield
    # Shutdown
    await exchanger_http.aclose()
    await identity_http.aclose()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    resp = error_response(VALIDATION_ERROR_CODE, "Validation failed", {"fields": fields})
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=400, content=resp.model_dump())


app.include_router(auth_router, prefix="/api/v1")
app.include_router(wallet_router, prefix="/api/v1")
app.include_router(exchange_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
