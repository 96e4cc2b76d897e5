"""Unit tests for the payment strategies (mocked ledger and card rail)."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from riderapp.domain.enums import PaymentMethod
from riderapp.domain.exceptions import CardRailError
from riderapp.domain.payment import (
    CreditCardPayment,
    WalletPayment,
    create_payment_strategy,
)
from riderapp.domain.protocols import CardCharge, CardRail, WalletLedger


class TestWalletPayment:
    @pytest.mark.asyncio
    async def test_debit_success_sets_transaction_id(self):
        ledger = AsyncMock()
        ledger.debit_wallet = AsyncMock(return_value=True)

        strategy = WalletPayment(ledger, passenger_id=7)
        assert await strategy.process_payment(25.0) is True
        ledger.debit_wallet.assert_awaited_once_with(7, 25.0)
        assert strategy.transaction_id

    @pytest.mark.asyncio
    async def test_insufficient_balance_returns_false(self):
        ledger = AsyncMock()
        ledger.debit_wallet = AsyncMock(return_value=False)

        strategy = WalletPayment(ledger, passenger_id=7)
        assert await strategy.process_payment(25.0) is False
        assert strategy.transaction_id is None

    @pytest.mark.asyncio
    async def test_refund_credits_wallet(self):
        ledger = AsyncMock()
        strategy = WalletPayment(ledger, passenger_id=7)
        assert await strategy.refund_payment(10.0) is True
        ledger.credit_wallet.assert_awaited_once_with(7, 10.0)


class TestCreditCardPayment:
    @pytest.mark.asyncio
    async def test_succeeded_charge(self):
        rail = AsyncMock()
        rail.charge = AsyncMock(return_value=CardCharge(id="pi_1", status="succeeded"))

        strategy = CreditCardPayment(rail)
        assert await strategy.process_payment(18.0) is True
        assert strategy.transaction_id == "pi_1"

    @pytest.mark.asyncio
    async def test_declined_charge(self):
        rail = AsyncMock()
        rail.charge = AsyncMock(
            return_value=CardCharge(id="pi_2", status="requires_payment_method")
        )
        assert await CreditCardPayment(rail).process_payment(18.0) is False

    @pytest.mark.asyncio
    async def test_rail_error_is_a_failed_payment(self):
        rail = AsyncMock()
        rail.charge = AsyncMock(side_effect=CardRailError("Card rail unreachable"))
        assert await CreditCardPayment(rail).process_payment(18.0) is False

    @pytest.mark.asyncio
    async def test_refund_uses_captured_transaction(self):
        rail = AsyncMock()
        rail.refund = AsyncMock(return_value="succeeded")

        strategy = CreditCardPayment(rail, transaction_id="pi_9")
        assert await strategy.refund_payment(5.0) is True
        rail.refund.assert_awaited_once_with("pi_9", 5.0)

    @pytest.mark.asyncio
    async def test_refund_without_transaction_fails(self):
        rail = AsyncMock()
        assert await CreditCardPayment(rail).refund_payment(5.0) is False
        rail.refund.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_refund_rail_error_fails(self):
        rail = AsyncMock()
        rail.refund = AsyncMock(side_effect=CardRailError("boom"))
        assert await CreditCardPayment(rail, "pi_9").refund_payment(5.0) is False


class TestStrategySelection:
    def test_wallet(self):
        strategy = create_payment_strategy(
            PaymentMethod.WALLET, passenger_id=1, ledger=AsyncMock(), card_rail=AsyncMock()
        )
        assert isinstance(strategy, WalletPayment)
        assert strategy.method is PaymentMethod.WALLET

    def test_credit_card(self):
        strategy = create_payment_strategy(
            "CREDIT_CARD",
            passenger_id=1,
            ledger=AsyncMock(),
            card_rail=AsyncMock(),
            transaction_id="pi_3",
        )
        assert isinstance(strategy, CreditCardPayment)
        assert strategy.transaction_id == "pi_3"


def test_protocols_are_structural():
    class Ledger:
        async def debit_wallet(self, passenger_id, amount):
            return True

        async def credit_wallet(self, passenger_id, amount):
            return None

    class Rail:
        async def charge(self, amount):
            return CardCharge("x", "succeeded")

        async def refund(self, transaction_id, amount):
            return "succeeded"

    assert isinstance(Ledger(), WalletLedger)
    assert isinstance(Rail(), CardRail)
