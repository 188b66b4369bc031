import logging

import stripe
from django.core.exceptions import ValidationError
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from bookings.models import Booking
from bookings.services.payments import AlreadyPaid, BookingCancelled, prepare_booking_payment

from .exceptions import ConfigurationError
from .webhooks import WebhookReconciler

logger = logging.getLogger(__name__)


def _error(message: str, status_code: int) -> Response:
    return Response({"error": message}, status=status_code)


class CreatePaymentIntentView(APIView):
    """Create a payment intent for one of the caller's bookings (or settle a free one)."""

    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        booking_id = request.data.get("bookingId") or request.data.get("booking_id")
        if not booking_id:
            return _error("bookingId is required", status.HTTP_400_BAD_REQUEST)

        try:
            booking = Booking.objects.select_related("game").get(pk=booking_id, user=request.user)
        except (Booking.DoesNotExist, ValidationError):
            return _error("Booking not found", status.HTTP_404_NOT_FOUND)

        try:
            intent = prepare_booking_payment(booking)
        except (AlreadyPaid, BookingCancelled) as exc:
            return _error(str(exc), status.HTTP_400_BAD_REQUEST)
        except ConfigurationError as exc:
            logger.error("Payment configuration error: %s", exc)
            return _error(str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
        except stripe.StripeError as exc:
            logger.exception("Stripe rejected payment intent for booking %s.", booking.pk)
            return _error(exc.user_message or str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(intent.as_dict())


class StripeWebhookView(APIView):
    """Receive Stripe webhook events and reconcile booking payment status."""

    permission_classes: list = []
    authentication_classes: list = []
    reconciler: WebhookReconciler | None = None

    def post(self, request, *args, **kwargs):
        payload = request.body
        sig_header = request.META.get("HTTP_STRIPE_SIGNATURE")

        try:
            reconciler = self.reconciler or WebhookReconciler.from_settings()
        except ConfigurationError as exc:
            logger.error("Stripe webhook secret not configured: %s", exc)
            return _error(str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

        result = reconciler.handle(payload, sig_header)
        return Response(result.body, status=result.status)
