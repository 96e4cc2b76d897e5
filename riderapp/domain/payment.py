"""
Payment Strategies
==================

* ``WalletPayment``     -- debit / credit the passenger's stored balance.
  The debit is a single conditional update (balance >= amount), so the
  check and the debit cannot be separated by a concurrent completion.
* ``CreditCardPayment`` -- authorize-and-capture through an external card
  rail; refunds go against the captured transaction.  Rail failures are
  reported as ``False``, never raised.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional

from .enums import PaymentMethod
from .exceptions import CardRailError
from .protocols import CardRail, WalletLedger

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"


class PaymentStrategy(ABC):
    method: PaymentMethod
    transaction_id: Optional[str] = None

    @abstractmethod
    async def process_payment(self, amount: float) -> bool: ...

    @abstractmethod
    async def refund_payment(self, amount: float) -> bool: ...


class WalletPayment(PaymentStrategy):
    method = PaymentMethod.WALLET

    def __init__(self, ledger: WalletLedger, passenger_id: int):
        self.ledger = ledger
        self.passenger_id = passenger_id

    async def process_payment(self, amount: float) -> bool:
        if not await self.ledger.debit_wallet(self.passenger_id, amount):
            return False
        self.transaction_id = str(uuid.uuid4())
        return True

    async def refund_payment(self, amount: float) -> bool:
        await self.ledger.credit_wallet(self.passenger_id, amount)
        return True


class CreditCardPayment(PaymentStrategy):
    method = PaymentMethod.CREDIT_CARD

    def __init__(self, rail: CardRail, transaction_id: Optional[str] = None):
        self.rail = rail
        self.transaction_id = transaction_id

    async def process_payment(self, amount: float) -> bool:
        try:
            charge = await self.rail.charge(amount)
        except CardRailError as exc:
            logger.warning("Card payment failed: %s", exc.message)
            return False
        self.transaction_id = charge.id
        return charge.status == SUCCEEDED

    async def refund_payment(self, amount: float) -> bool:
        if not self.transaction_id:
            return False
        try:
            status = await self.rail.refund(self.transaction_id, amount)
        except CardRailError as exc:
            logger.warning("Card refund failed: %s", exc.message)
            return False
        return status == SUCCEEDED


def create_payment_strategy(
    method: PaymentMethod,
    *,
    passenger_id: int,
    ledger: WalletLedger,
    card_rail: CardRail,
    transaction_id: Optional[str] = None,
) -> PaymentStrategy:
    """Pick the settlement strategy for a ride's payment method."""
    method = PaymentMethod(method)
    if method is PaymentMethod.WALLET:
        return WalletPayment(ledger, passenger_id)
    return CreditCardPayment(card_rail, transaction_id)
