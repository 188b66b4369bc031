from __future__ import annotations

import logging
from typing import Optional

import stripe
from django.conf import settings

from .exceptions import ConfigurationError
from .processors import SheetError

logger = logging.getLogger(__name__)


def intent_id_from_secret(client_secret: str) -> str:
    return client_secret.split("_secret_", 1)[0]


class StripeTestCardSheet:
    """
    Stand-in for the mobile payment sheet when driving payments from a shell.

    Confirms the intent server-side with one of Stripe's test payment methods,
    so it only makes sense against a test-mode secret key.
    """

    def __init__(self, payment_method: str = "pm_card_visa", api_key: str | None = None):
        self.payment_method = payment_method
        self.api_key = api_key or getattr(settings, "STRIPE_SECRET_KEY", "")
        self.client_secret: str | None = None

    def init(self, *, client_secret: str, merchant_display_name: str, style: str) -> Optional[SheetError]:
        if not self.api_key:
            raise ConfigurationError("STRIPE_SECRET_KEY is not configured.")
        if not self.api_key.startswith("sk_test_"):
            return SheetError(SheetError.FAILED, "Test card payments require a test-mode secret key.")
        self.client_secret = client_secret
        return None

    def present(self) -> Optional[SheetError]:
        if self.client_secret is None:
            return SheetError(SheetError.FAILED, "Payment sheet was not initialised.")

        stripe.api_key = self.api_key
        try:
            intent = stripe.PaymentIntent.confirm(
                intent_id_from_secret(self.client_secret),
                payment_method=self.payment_method,
            )
        except stripe.CardError as exc:
            return SheetError(SheetError.FAILED, exc.user_message or str(exc))
        except stripe.StripeError as exc:
            logger.warning("Stripe rejected test confirmation: %s", exc)
            return SheetError(SheetError.FAILED, str(exc))

        if intent.status != "succeeded":
            return SheetError(SheetError.FAILED, f"Payment ended in status {intent.status}.")
        return None
