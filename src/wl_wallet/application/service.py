"""WalletApplicationService: balance mutations, currency exchange, rate caching.

Every lower-layer failure (store, cache, exchanger) is logged here and turned
into one of three AppErrors before leaving the service:
  - InvalidAmountOrCurrencyError: unsupported code, or withdrawal below zero
  - NotEnoughFundsError:          exchange source balance too small
  - SomethingWentWrongError:      everything else

Deposit and withdraw are single atomic statements. Exchange writes the whole
record with a compare-and-swap on `version` and re-reads on conflict, so two
concurrent requests for one wallet never lose an update.

Rates are read through Redis with a fixed TTL. The whole-table entry and the
per-pair entries are cached independently.
"""

import asyncio
import json
import logging
import math

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wl_common.amounts import to_real
from src.wl_common.enums import SUPPORTED_CURRENCIES, Currency
from src.wl_common.errors import (
    InvalidAmountOrCurrencyError,
    NotEnoughFundsError,
    SomethingWentWrongError,
    UpstreamServiceError,
)
from src.wl_wallet.domain.cache import RATES_TABLE_KEY, RateCacheProtocol, pair_rate_key
from src.wl_wallet.domain.exchange import ExchangeRateSourceProtocol
from src.wl_wallet.domain.models import ExchangeResult, Wallet
from src.wl_wallet.domain.repository import WalletRepositoryProtocol
from src.wl_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger(__name__)

# Compare-and-swap retry configuration for exchange
MAX_RETRIES = 3
RETRY_DELAY_MS = 10


def parse_currency(code: str) -> Currency:
    if code not in SUPPORTED_CURRENCIES:
        raise InvalidAmountOrCurrencyError()
    return Currency(code)


class WalletApplicationService:
    def __init__(
        self,
        cache: RateCacheProtocol,
        rate_source: ExchangeRateSourceProtocol,
        repo: WalletRepositoryProtocol | None = None,
        rates_ttl_seconds: int = settings.RATES_CACHE_TTL_SECONDS,
    ) -> None:
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()
        self._cache = cache
        self._rate_source = rate_source
        self._rates_ttl = rates_ttl_seconds

    # ------------------------------------------------------------------
    # Wallet lifecycle and balances
    # ------------------------------------------------------------------

    async def create_user_wallet(self, db: AsyncSession, user_id: str) -> Wallet:
        try:
            wallet = await self._repo.create_wallet(db, user_id)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("create_user_wallet: store failed for user %s: %s", user_id, exc)
            raise SomethingWentWrongError() from None
        logger.info("Created wallet %s for user %s", wallet.id, user_id)
        return wallet

    async def get_balance(self, db: AsyncSession, user_id: str) -> Wallet:
        return await self._load_wallet(db, user_id, op="get_balance")

    async def deposit(
        self, db: AsyncSession, user_id: str, amount: float, currency: str
    ) -> Wallet:
        cur = parse_currency(currency)
        try:
            wallet = await self._repo.deposit(db, user_id, cur, amount)
            if wallet is None:
                await db.rollback()
                logger.error("deposit: no wallet for user %s", user_id)
                raise SomethingWentWrongError()
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("deposit: store failed for user %s: %s", user_id, exc)
            raise SomethingWentWrongError() from None
        return wallet

    async def withdraw(
        self, db: AsyncSession, user_id: str, amount: float, currency: str
    ) -> Wallet:
        cur = parse_currency(currency)
        try:
            wallet = await self._repo.withdraw(db, user_id, cur, amount)
            if wallet is None:
                await db.rollback()
                # Tell "no such wallet" apart from "would go negative"
                existing = await self._repo.get_wallet_by_user_id(db, user_id)
                if existing is None:
                    logger.error("withdraw: no wallet for user %s", user_id)
                    raise SomethingWentWrongError()
                raise InvalidAmountOrCurrencyError()
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error("withdraw: store failed for user %s: %s", user_id, exc)
            raise SomethingWentWrongError() from None
        return wallet

    # ------------------------------------------------------------------
    # Exchange
    # ------------------------------------------------------------------

    async def exchange_currency(
        self,
        db: AsyncSession,
        user_id: str,
        amount: float,
        from_currency: str,
        to_currency: str,
    ) -> ExchangeResult:
        src = parse_currency(from_currency)
        dst = parse_currency(to_currency)

        wallet = await self._load_wallet(db, user_id, op="exchange_currency")
        rate = await self._get_rate(src.value, dst.value)
        # Balances are REAL; compare and debit at the same precision
        amount = to_real(amount)
        credited = to_real(amount / rate)

        for attempt in range(MAX_RETRIES):
            available = wallet.balance_of(src)
            if amount > available:
                raise NotEnoughFundsError()

            new_from = to_real(available - amount)
            debited = wallet.with_balance(src, new_from)
            new_to = to_real(debited.balance_of(dst) + credited)
            updated = debited.with_balance(dst, new_to)

            try:
                stored = await self._repo.update_wallet(db, updated, wallet.version)
                if stored is not None:
                    await db.commit()
                    return ExchangeResult(
                        message="Exchange successful",
                        exchanged_amount=credited,
                        new_balance={
                            src.value: stored.balance_of(src),
                            dst.value: stored.balance_of(dst),
                        },
                    )
                await db.rollback()
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("exchange_currency: store failed for user %s: %s", user_id, exc)
                raise SomethingWentWrongError() from None

            if attempt == MAX_RETRIES - 1:
                break
            logger.debug(
                "Version conflict on wallet of user %s, retrying (%d/%d)",
                user_id, attempt + 1, MAX_RETRIES,
            )
            await asyncio.sleep(RETRY_DELAY_MS / 1000.0)
            wallet = await self._load_wallet(db, user_id, op="exchange_currency")

        logger.warning("exchange_currency: max retries exceeded for user %s", user_id)
        raise SomethingWentWrongError()

    # ------------------------------------------------------------------
    # Rates (read-through cache)
    # ------------------------------------------------------------------

    async def get_exchange_rates(self) -> dict[str, float]:
        cached = await self._cache_get(RATES_TABLE_KEY)
        if cached is not None:
            try:
                return {
                    str(code): float(rate)
                    for code, rate in json.loads(cached)["rates"].items()
                }
            except (ValueError, KeyError, TypeError, AttributeError) as exc:
                logger.error("Undecodable rates table in cache, refetching: %s", exc)

        try:
            rates = await self._rate_source.get_exchange_rates()
        except UpstreamServiceError as exc:
            logger.error("get_exchange_rates: source failed: %s", exc)
            raise SomethingWentWrongError() from None

        await self._cache_set(RATES_TABLE_KEY, json.dumps({"rates": rates}))
        return rates

    async def _get_rate(self, from_currency: str, to_currency: str) -> float:
        key = pair_rate_key(from_currency, to_currency)
        cached = await self._cache_get(key)
        if cached is not None:
            try:
                rate = float(cached)
            except ValueError as exc:
                logger.error("Unparseable rate in cache for %s, refetching: %s", key, exc)
            else:
                return self._checked_rate(rate, key)

        try:
            rate = await self._rate_source.get_exchange_rate_for_currency(
                from_currency, to_currency
            )
        except UpstreamServiceError as exc:
            logger.error("get_rate: source failed for %s: %s", key, exc)
            raise SomethingWentWrongError() from None

        rate = self._checked_rate(rate, key)
        await self._cache_set(key, repr(rate))
        return rate

    @staticmethod
    def _checked_rate(rate: float, key: str) -> float:
        if not (rate > 0 and math.isfinite(rate)):
            logger.error("Refusing non-positive or non-finite rate %r for %s", rate, key)
            raise SomethingWentWrongError()
        return rate

    async def _cache_get(self, key: str) -> str | None:
        try:
            return await self._cache.get_value(key)
        except RedisError as exc:
            logger.warning("Cache read failed for %s, treating as miss: %s", key, exc)
            return None

    async def _cache_set(self, key: str, value: str) -> None:
        try:
            await self._cache.set_value(key, value, self._rates_ttl)
        except RedisError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    # ------------------------------------------------------------------

    async def _load_wallet(self, db: AsyncSession, user_id: str, op: str) -> Wallet:
        try:
            wallet = await self._repo.get_wallet_by_user_id(db, user_id)
        except SQLAlchemyError as exc:
            logger.error("%s: store read failed for user %s: %s", op, user_id, exc)
            raise SomethingWentWrongError() from None
        if wallet is None:
            logger.error("%s: no wallet for user %s", op, user_id)
            raise SomethingWentWrongError()
        return wallet
