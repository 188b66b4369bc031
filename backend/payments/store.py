from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from django.core.exceptions import ValidationError
from django.db import transaction

from bookings.models import Booking
from notifications.models import Notification
from notifications.services import notify

from .models import Payment

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    def mark_paid(
        self,
        booking_id: str,
        *,
        paid_at: datetime,
        payment_intent_id: str | None = None,
    ) -> bool:
        """Set the booking paid; return True only for the call that made the transition."""


class DjangoBookingStore:
    """
    Applies the paid transition with a single conditional UPDATE.

    The row is only touched while `fee_paid` is still false, so redelivered or
    concurrent events leave `paid_at` at the value written by the first one.
    """

    def mark_paid(
        self,
        booking_id: str,
        *,
        paid_at: datetime,
        payment_intent_id: str | None = None,
    ) -> bool:
        with transaction.atomic():
            try:
                updated = Booking.objects.filter(pk=booking_id, fee_paid=False).update(
                    fee_paid=True,
                    paid_at=paid_at,
                )
            except ValidationError:
                logger.warning("Ignoring payment for malformed booking id %r.", booking_id)
                return False

            if not updated:
                if Booking.objects.filter(pk=booking_id).exists():
                    logger.info("Booking %s already paid; nothing to do.", booking_id)
                else:
                    logger.warning("Payment references unknown booking %s.", booking_id)
                return False

            if payment_intent_id:
                Payment.objects.filter(stripe_payment_intent=payment_intent_id).update(
                    status=Payment.SUCCEEDED,
                    updated_at=paid_at,
                )

        logger.info("Booking %s marked paid.", booking_id)
        if payment_intent_id:
            self._notify_paid(booking_id)
        return True

    def _notify_paid(self, booking_id: str) -> None:
        # Runs after the paid transition has committed; a failure here must not undo it.
        try:
            booking = Booking.objects.select_related("game", "user").get(pk=booking_id)
            notify(
                user=booking.user,
                type=Notification.PAYMENT_RECEIVED,
                title="Payment received",
                body=f"Your spot in {booking.game.title} is paid.",
                reference_id=booking.game_id,
            )
        except Exception:
            logger.exception("Could not notify player about payment for booking %s.", booking_id)
