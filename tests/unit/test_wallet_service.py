"""Unit tests for WalletApplicationService using a mock repository."""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from src.wl_common.amounts import to_real
from src.wl_common.enums import SUPPORTED_CURRENCIES, Currency
from src.wl_common.errors import (
    InvalidAmountOrCurrencyError,
    NotEnoughFundsError,
    SomethingWentWrongError,
)
from src.wl_wallet.application.service import WalletApplicationService, parse_currency
from src.wl_wallet.domain.models import Wallet
from tests.fakes import FakeRateCache, FakeRateSource


def _make_wallet(eur: float = 100.0, usd: float = 0.0, rub: float = 0.0, version: int = 1) -> Wallet:
    return Wallet(
        id="wallet-1",
        user_id="user-1",
        balance_eur=eur,
        balance_usd=usd,
        balance_rub=rub,
        version=version,
    )


def _make_service(mock_repo: AsyncMock, pair_rate: float = 0.9) -> WalletApplicationService:
    source = FakeRateSource(
        rates={"EUR": 1.0},
        pair_rates={("EUR", "USD"): pair_rate, ("USD", "EUR"): pair_rate},
    )
    return WalletApplicationService(cache=FakeRateCache(), rate_source=source, repo=mock_repo)


def _db_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


class TestParseCurrency:
    def test_supported_codes(self) -> None:
        assert parse_currency("EUR") is Currency.EUR
        assert parse_currency("USD") is Currency.USD
        assert parse_currency("RUB") is Currency.RUB

    def test_accepts_every_supported_code(self) -> None:
        for code in SUPPORTED_CURRENCIES:
            assert parse_currency(code).value == code

    @pytest.mark.parametrize("code", ["GBP", "eur", "", "EURO"])
    def test_unsupported_code_raises(self, code: str) -> None:
        with pytest.raises(InvalidAmountOrCurrencyError):
            parse_currency(code)


class TestCreateUserWallet:
    async def test_creates_and_commits(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.create_wallet.return_value = _make_wallet(0.0, version=0)
        svc = _make_service(mock_repo)
        db = AsyncMock()

        wallet = await svc.create_user_wallet(db, "user-1")

        assert wallet.balances() == {"EUR": 0.0, "USD": 0.0, "RUB": 0.0}
        db.commit.assert_awaited_once()

    async def test_duplicate_user_is_internal_error(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.create_wallet.side_effect = IntegrityError("INSERT", {}, Exception("dup"))
        svc = _make_service(mock_repo)
        db = AsyncMock()

        with pytest.raises(SomethingWentWrongError):
            await svc.create_user_wallet(db, "user-1")
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


class TestGetBalance:
    async def test_returns_wallet(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_wallet_by_user_id.return_value = _make_wallet(150.0, 5.0, 700.0)
        svc = _make_service(mock_repo)

        wallet = await svc.get_balance(AsyncMock(), "user-1")

        assert wallet.balances() == {"EUR": 150.0, "USD": 5.0, "RUB": 700.0}

    async def test_missing_wallet_is_internal_error(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_wallet_by_user_id.return_value = None
        svc = _make_service(mock_repo)

        with pytest.raises(SomethingWentWrongError):
            await svc.get_balance(AsyncMock(), "nobody")

    async def test_store_failure_is_internal_error(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_wallet_by_user_id.side_effect = _db_error()
        svc = _make_service(mock_repo)

        with pytest.raises(SomethingWentWrongError):
            await svc.get_balance(AsyncMock(), "user-1")


class TestDeposit:
    async def test_deposits_into_matching_currency(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.deposit.return_value = _make_wallet(150.0)
        svc = _make_service(mock_repo)
        db = AsyncMock()

        wallet = await svc.deposit(db, "user-1", 50.0, "EUR")

        assert wallet.balance_eur == 150.0
        mock_repo.deposit.assert_awaited_once_with(db, "user-1", Currency.EUR, 50.0)
        db.commit.assert_awaited_once()

    async def test_unsupported_currency_never_touches_store(self) -> None:
        mock_repo = AsyncMock()
        svc = _make_service(mock_repo)

        with pytest.raises(InvalidAmountOrCurrencyError):
            await svc.deposit(AsyncMock(), "user-1", 50.0, "GBP")
        mock_repo.deposit.assert_not_awaited()

    async def test_missing_wallet_is_internal_error(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.deposit.return_value = None
        svc = _make_service(mock_repo)
        db = AsyncMock()

        with pytest.raises(SomethingWentWrongError):
            await svc.deposit(db, "nobody", 50.0, "USD")
        db.commit.assert_not_awaited()

    async def test_store_failure_rolls_back(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.deposit.side_effect = _db_error()
        svc = _make_service(mock_repo)
        db = AsyncMock()

        with pytest.raises(SomethingWentWrongError):
            await svc.deposit(db, "user-1", 50.0, "RUB")
        db.rollback.assert_awaited_once()


class TestWithdraw:
    async def test_withdraws_from_matching_currency(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.withdraw.return_value = _make_wallet(60.0)
        svc = _make_service(mock_repo)
        db = AsyncMock()

        wallet = await svc.withdraw(db, "user-1", 40.0, "EUR")

        assert wallet.balance_eur == 60.0
        db.commit.assert_awaited_once()

    async def test_insufficient_balance_is_invalid_amount(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.withdraw.return_value = None
        mock_repo.get_wallet_by_user_id.return_value = _make_wallet(10.0)
        svc = _make_service(mock_repo)
        db = AsyncMock()

        with pytest.raises(InvalidAmountOrCurrencyError):
            await svc.withdraw(db, "user-1", 40.0, "EUR")
        db.commit.assert_not_awaited()

    async def test_unsupported_currency_is_same_kind_as_insufficient(self) -> None:
        mock_repo = AsyncMock()
        svc = _make_service(mock_repo)

        with pytest.raises(InvalidAmountOrCurrencyError):
            await svc.withdraw(AsyncMock(), "user-1", 1.0, "JPY")

    async def test_missing_wallet_is_internal_error(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.withdraw.return_value = None
        mock_repo.get_wallet_by_user_id.return_value = None
        svc = _make_service(mock_repo)

        with pytest.raises(SomethingWentWrongError):
            await svc.withdraw(AsyncMock(), "nobody", 1.0, "EUR")


class TestExchangeCurrency:
    async def test_divides_amount_by_rate(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_wallet_by_user_id.return_value = _make_wallet(100.0, 0.0)
        mock_repo.update_wallet.side_effect = lambda db, w, v: w
        svc = _make_service(mock_repo, pair_rate=0.8)
        db = AsyncMock()

        result = await svc.exchange_currency(db, "user-1", 100.0, "EUR", "USD")

        assert result.message == "Exchange successful"
        assert result.exchanged_amount == pytest.approx(125.0)
        assert result.new_balance == {"EUR": 0.0, "USD": pytest.approx(125.0)}
        db.commit.assert_awaited_once()

    async def test_writes_whole_record_once_with_expected_version(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_wallet_by_user_id.return_value = _make_wallet(100.0, 10.0, 7.0, version=4)
        mock_repo.update_wallet.side_effect = lambda db, w, v: w
        svc = _make_service(mock_repo, pair_rate=2.0)
        db = AsyncMock()

        await svc.exchange_currency(db, "user-1", 40.0, "EUR", "USD")

        mock_repo.update_wallet.assert_awaited_once()
        _, written, expected_version = mock_repo.update_wallet.await_args.args
        assert expected_version == 4
        assert written.balance_eur == pytest.approx(60.0)
        assert written.balance_usd == pytest.approx(30.0)
        assert written.balance_rub == 7.0

    async def test_insufficient_source_is_not_enough_funds(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_wallet_by_user_id.return_value = _make_wallet(10.0)
        svc = _make_service(mock_repo)

        with pytest.raises(NotEnoughFundsError):
            await svc.exchange_currency(AsyncMock(), "user-1", 50.0, "EUR", "USD")
        mock_repo.update_wallet.assert_not_awaited()

    @pytest.mark.parametrize(("src", "dst"), [("GBP", "USD"), ("EUR", "CHF")])
    async def test_unsupported_currency_is_invalid_amount(self, src: str, dst: str) -> None:
        mock_repo = AsyncMock()
        svc = _make_service(mock_repo)

        with pytest.raises(InvalidAmountOrCurrencyError):
            await svc.exchange_currency(AsyncMock(), "user-1", 1.0, src, dst)
        mock_repo.get_wallet_by_user_id.assert_not_awaited()

    async def test_rate_source_failure_is_internal_error(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_wallet_by_user_id.return_value = _make_wallet(100.0)
        svc = _make_service(mock_repo)

        # RUB pair is not known to the fake source
        with pytest.raises(SomethingWentWrongError):
            await svc.exchange_currency(AsyncMock(), "user-1", 1.0, "EUR", "RUB")

    async def test_store_failure_on_write_is_internal_error(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_wallet_by_user_id.return_value = _make_wallet(100.0)
        mock_repo.update_wallet.side_effect = _db_error()
        svc = _make_service(mock_repo)
        db = AsyncMock()

        with pytest.raises(SomethingWentWrongError):
            await svc.exchange_currency(db, "user-1", 10.0, "EUR", "USD")
        db.rollback.assert_awaited()

    async def test_persistent_version_conflict_gives_up(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_wallet_by_user_id.return_value = _make_wallet(100.0)
        mock_repo.update_wallet.return_value = None
        svc = _make_service(mock_repo)

        with patch(
            "src.wl_wallet.application.service.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            with pytest.raises(SomethingWentWrongError):
                await svc.exchange_currency(AsyncMock(), "user-1", 10.0, "EUR", "USD")

        assert mock_repo.update_wallet.await_count == 3
        # No back-off or reload after the last attempt
        assert sleep.await_count == 2
        assert mock_repo.get_wallet_by_user_id.await_count == 3

    async def test_zero_rate_is_refused(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_wallet_by_user_id.return_value = _make_wallet(100.0)
        svc = _make_service(mock_repo, pair_rate=0.0)

        with pytest.raises(SomethingWentWrongError):
            await svc.exchange_currency(AsyncMock(), "user-1", 10.0, "EUR", "USD")
        mock_repo.update_wallet.assert_not_awaited()

    async def test_infinite_rate_is_refused(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_wallet_by_user_id.return_value = _make_wallet(100.0)
        svc = _make_service(mock_repo, pair_rate=float("inf"))

        with pytest.raises(SomethingWentWrongError):
            await svc.exchange_currency(AsyncMock(), "user-1", 10.0, "EUR", "USD")
        mock_repo.update_wallet.assert_not_awaited()

    @pytest.mark.parametrize("amount", [0.1, 0.7, 2.2, 10.1])
    async def test_whole_real_balance_can_be_exchanged(self, amount: float) -> None:
        mock_repo = AsyncMock()
        # The store returns the balance already rounded to REAL
        mock_repo.get_wallet_by_user_id.return_value = _make_wallet(to_real(amount))
        mock_repo.update_wallet.side_effect = lambda db, w, v: w
        svc = _make_service(mock_repo)

        result = await svc.exchange_currency(AsyncMock(), "user-1", amount, "EUR", "USD")

        assert result.new_balance["EUR"] == 0.0
        _, written, _ = mock_repo.update_wallet.await_args.args
        assert written.balance_usd == to_real(written.balance_usd)
