"""
Card rails.

``StripeCardRail`` charges cards through the Stripe REST API: a payment
intent is created and confirmed in one call (authorize + capture) and
refunds are issued against that intent.  Amounts go over the wire in minor
units.  Transport errors, non-2xx answers and success bodies without the
expected fields raise ``CardRailError``; the ``CreditCardPayment``
strategy turns that into a failed payment.

``SimulatedCardRail`` approves everything and is only meant for local runs
without a Stripe key.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import httpx

from riderapp.domain.exceptions import CardRailError
from riderapp.domain.protocols import CardCharge

logger = logging.getLogger(__name__)


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


class StripeCardRail:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.stripe.com/v1",
        currency: str = "usd",
        payment_method: str = "pm_card_visa",
        timeout: float = 10.0,
    ):
        self.currency = currency
        self.payment_method = payment_method
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    async def _post(self, path: str, form: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(path, data=form)
        except httpx.HTTPError as e:
            raise CardRailError(f"Card rail unreachable: {e}") from e
        if response.status_code >= 400:
            try:
                message = response.json().get("error", {}).get("message", response.text)
            except ValueError:
                message = response.text
            raise CardRailError(f"Card rail rejected request ({response.status_code}): {message}")
        try:
            return response.json()
        except ValueError as e:
            raise CardRailError(f"Card rail sent an unreadable response: {e}") from e

    @staticmethod
    def _field(data: dict[str, Any], name: str) -> str:
        value = data.get(name) if isinstance(data, dict) else None
        if not value:
            raise CardRailError(f"Card rail response is missing {name!r}")
        return value

    async def charge(self, amount: float) -> CardCharge:
        data = await self._post("/payment_intents", {
            "amount": to_minor_units(amount),
            "currency": self.currency,
            "payment_method": self.payment_method,
            "confirm": "true",
            "automatic_payment_methods[enabled]": "true",
            "automatic_payment_methods[allow_redirects]": "never",
        })
        charge = CardCharge(id=self._field(data, "id"), status=self._field(data, "status"))
        logger.info("Payment intent %s: %s", charge.id, charge.status)
        return charge

    async def refund(self, transaction_id: str, amount: float) -> str:
        data = await self._post("/refunds", {
            "payment_intent": transaction_id,
            "amount": to_minor_units(amount),
        })
        return self._field(data, "status")

    async def aclose(self) -> None:
        await self._client.aclose()


class SimulatedCardRail:
    async def charge(self, amount: float) -> CardCharge:
        return CardCharge(id=f"sim_{uuid.uuid4().hex}", status="succeeded")

    async def refund(self, transaction_id: str, amount: float) -> str:
        return "succeeded"

    async def aclose(self) -> None:
        return None
