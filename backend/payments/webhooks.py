from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

import stripe
from django.conf import settings
from django.utils import timezone

from .events import PaymentIntentFailed, PaymentIntentSucceeded, WebhookEvent, decode_event
from .exceptions import ConfigurationError, InvalidSignature
from .store import BookingStore, DjangoBookingStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookResponse:
    status: int
    body: dict[str, Any] = field(default_factory=dict)


RECEIVED = WebhookResponse(200, {"received": True})


class WebhookReconciler:
    """
    Turns signed Stripe deliveries into booking paid-state updates.

    Stateless apart from its configuration, so one instance may serve any
    number of concurrent requests.
    """

    def __init__(
        self,
        *,
        webhook_secret: str,
        store: BookingStore,
        clock: Callable[[], datetime] = timezone.now,
        tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE,
    ):
        if not webhook_secret:
            raise ConfigurationError("STRIPE_WEBHOOK_SECRET is not configured.")
        self.webhook_secret = webhook_secret
        self.store = store
        self.clock = clock
        self.tolerance = tolerance

    @classmethod
    def from_settings(cls, store: BookingStore | None = None) -> "WebhookReconciler":
        return cls(
            webhook_secret=getattr(settings, "STRIPE_WEBHOOK_SECRET", ""),
            store=store or DjangoBookingStore(),
        )

    def verify(self, raw_body: bytes, signature: str) -> dict:
        """Check the signature against the untouched body, then parse it."""
        try:
            payload = raw_body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError("Webhook body is not valid UTF-8.") from exc

        try:
            stripe.WebhookSignature.verify_header(
                payload, signature, self.webhook_secret, self.tolerance
            )
        except stripe.SignatureVerificationError as exc:
            raise InvalidSignature(str(exc)) from exc

        return json.loads(payload)

    def handle(self, raw_body: bytes, signature: str | None) -> WebhookResponse:
        if not signature:
            logger.warning("Stripe webhook received without a signature header.")
            return WebhookResponse(400, {"error": "Missing signature"})

        try:
            event = decode_event(self.verify(raw_body, signature))
        except InvalidSignature as exc:
            logger.warning("Invalid Stripe signature: %s", exc)
            return WebhookResponse(400, {"error": str(exc)})
        except ValueError as exc:
            logger.warning("Invalid payload received on Stripe webhook: %s", exc)
            return WebhookResponse(400, {"error": str(exc)})

        try:
            self.dispatch(event)
        except Exception as exc:
            logger.exception("Failed to apply Stripe event %s (%s).", event.event_id, event.type)
            return WebhookResponse(500, {"error": str(exc)})
        return RECEIVED

    def dispatch(self, event: WebhookEvent) -> None:
        if isinstance(event, PaymentIntentSucceeded):
            self._apply_succeeded(event)
        elif isinstance(event, PaymentIntentFailed):
            logger.info(
                "Payment intent %s failed for booking %s: %s",
                event.payment_intent_id,
                event.booking_id,
                event.failure_message or "no reason given",
            )
        else:
            logger.debug("Ignoring Stripe event %s of type %r.", event.event_id, event.type)

    def _apply_succeeded(self, event: PaymentIntentSucceeded) -> None:
        if not event.booking_id:
            logger.warning(
                "Payment intent %s succeeded without booking metadata; nothing to update.",
                event.payment_intent_id,
            )
            return
        self.store.mark_paid(
            event.booking_id,
            paid_at=self.clock(),
            payment_intent_id=event.payment_intent_id,
        )
