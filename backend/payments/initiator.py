from __future__ import annotations

import logging
from typing import Any, Protocol

import requests
from django.conf import settings

from .exceptions import ConfigurationError, RemoteFunctionError
from .processors import PaymentProcessor, PaymentResult

logger = logging.getLogger(__name__)


class IntentFunction(Protocol):
    def create_payment_intent(self, booking_id: str) -> dict[str, Any]:
        ...


class IntentFunctionClient:
    """HTTP client for the trusted create-payment-intent function."""

    path = "create-payment-intent/"

    def __init__(
        self,
        *,
        base_url: str,
        access_token: str,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ):
        if not base_url:
            raise ConfigurationError("PAYMENT_FUNCTIONS_URL is not configured.")
        if not access_token:
            raise ConfigurationError("An access token is required to call payment functions.")
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, access_token: str, **kwargs) -> "IntentFunctionClient":
        return cls(
            base_url=getattr(settings, "PAYMENT_FUNCTIONS_URL", ""),
            access_token=access_token,
            timeout=getattr(settings, "PAYMENT_FUNCTIONS_TIMEOUT", 15.0),
            **kwargs,
        )

    def create_payment_intent(self, booking_id: str) -> dict[str, Any]:
        url = f"{self.base_url}/{self.path}"
        try:
            response = self.session.post(
                url,
                json={"bookingId": str(booking_id)},
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise RemoteFunctionError(str(exc)) from exc

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.ok:
            message = None
            if isinstance(data, dict):
                message = data.get("error") or data.get("detail")
            raise RemoteFunctionError(
                message or f"create-payment-intent failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if not isinstance(data, dict):
            raise RemoteFunctionError("create-payment-intent returned an unexpected body.")
        return data


class PaymentInitiator:
    """
    Client half of the payment flow.

    A successful result only means the processor accepted the payment; the
    booking counts as paid once the webhook has recorded it server-side.
    """

    def __init__(self, *, functions: IntentFunction, processor: PaymentProcessor):
        self.functions = functions
        self.processor = processor

    def initiate(self, booking_id: str) -> PaymentResult:
        data = self.functions.create_payment_intent(booking_id)

        # Free game: the function already settled it.
        if data.get("free"):
            return PaymentResult(success=True, free=True)

        self.processor.ensure_supported()

        client_secret = data.get("clientSecret")
        if not client_secret:
            raise ConfigurationError("create-payment-intent did not return a client secret.")

        result = self.processor.collect(client_secret)
        if not result.success:
            logger.info("Payment for booking %s cancelled by the player.", booking_id)
        return result
