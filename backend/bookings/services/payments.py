from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from django.conf import settings
from django.utils import timezone

from bookings.models import Booking
from payments.exceptions import ConfigurationError
from payments.models import Payment
from payments.store import BookingStore, DjangoBookingStore


class AlreadyPaid(Exception):
    pass


class BookingCancelled(Exception):
    pass


@dataclass
class PaymentIntentStub:
    """
    Lightweight stand-in for stripe.PaymentIntent when running in stub mode.

    Tests and local development do not hit Stripe; instead, we return predictable
    identifiers so the rest of the booking flow (payment records, client
    secrets) behaves as if Stripe responded.
    """

    id: str
    client_secret: str
    status: str = Payment.REQUIRES_PAYMENT


@dataclass(frozen=True)
class IntentResponse:
    free: bool
    client_secret: str | None = None
    amount: int | None = None
    currency: str | None = None

    def as_dict(self) -> dict:
        if self.free:
            return {"free": True}
        return {
            "clientSecret": self.client_secret,
            "amount": self.amount,
            "currency": self.currency,
        }


def _stub_payment_intent() -> PaymentIntentStub:
    intent_id = f"pi_test_{uuid4().hex}"
    return PaymentIntentStub(
        id=intent_id,
        client_secret=f"{intent_id}_secret_{uuid4().hex[:12]}",
    )


def _get_stripe_api_key() -> Optional[str]:
    key = getattr(settings, "STRIPE_SECRET_KEY", "")
    return key or None


def _should_use_stub() -> bool:
    if getattr(settings, "STRIPE_USE_STUB", False):
        return True
    return _get_stripe_api_key() is None


def create_payment_intent(*, booking: Booking, amount_cents: int):
    """
    Create a Stripe PaymentIntent (or stub equivalent) for a booking.

    Returns an object with the subset of attributes (`id`, `client_secret`,
    `status`) consumed by the payment flow. The booking id travels in the
    intent metadata so the webhook can find its way back.
    """

    if _should_use_stub():
        return _stub_payment_intent()

    import stripe

    api_key = _get_stripe_api_key()
    if not api_key:
        raise ConfigurationError("STRIPE_SECRET_KEY is not configured.")

    stripe.api_key = api_key
    return stripe.PaymentIntent.create(
        amount=amount_cents,
        currency=booking.game.fee_currency.lower(),
        metadata={
            "booking_id": str(booking.pk),
            "game_id": str(booking.game_id),
            "user_id": str(booking.user_id),
        },
    )


def prepare_booking_payment(booking: Booking, *, store: BookingStore | None = None) -> IntentResponse:
    """
    Server half of the payment flow: free games are settled on the spot,
    paid games get a fresh intent whose client secret is handed to the app.
    """

    if booking.fee_paid:
        raise AlreadyPaid("Already paid")
    if booking.status == Booking.CANCELLED:
        raise BookingCancelled("Booking is cancelled")

    game = booking.game
    amount_cents = game.fee_cents
    if amount_cents <= 0:
        (store or DjangoBookingStore()).mark_paid(booking.pk, paid_at=timezone.now())
        return IntentResponse(free=True)

    intent = create_payment_intent(booking=booking, amount_cents=amount_cents)

    booking.stripe_payment_intent_id = intent.id
    booking.save(update_fields=["stripe_payment_intent_id"])
    Payment.objects.update_or_create(
        stripe_payment_intent=intent.id,
        defaults={
            "booking": booking,
            "amount_cents": amount_cents,
            "currency": game.fee_currency.lower(),
            "status": intent.status,
        },
    )

    return IntentResponse(
        free=False,
        client_secret=intent.client_secret,
        amount=amount_cents,
        currency=game.fee_currency,
    )
