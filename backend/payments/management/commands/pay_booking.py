from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from rest_framework_simplejwt.tokens import RefreshToken

from bookings.models import Booking
from payments.exceptions import PaymentError
from payments.initiator import IntentFunctionClient, PaymentInitiator
from payments.processors import build_payment_processor
from payments.sheets import StripeTestCardSheet


class Command(BaseCommand):
    help = "Pay for a booking end to end through the payment functions, using a Stripe test card."

    def add_arguments(self, parser):
        parser.add_argument("booking_id")
        parser.add_argument("--platform", default=None, help="Override PAYMENT_PLATFORM (native or web).")
        parser.add_argument("--payment-method", default="pm_card_visa")

    def handle(self, *args, **options):
        booking_id = options["booking_id"]
        try:
            booking = Booking.objects.select_related("user").get(pk=booking_id)
        except (Booking.DoesNotExist, ValidationError) as exc:
            raise CommandError(f"Booking {booking_id} does not exist.") from exc

        access_token = str(RefreshToken.for_user(booking.user).access_token)
        try:
            initiator = PaymentInitiator(
                functions=IntentFunctionClient.from_settings(access_token),
                processor=build_payment_processor(
                    options["platform"],
                    sheet=StripeTestCardSheet(payment_method=options["payment_method"]),
                ),
            )
            result = initiator.initiate(booking_id)
        except PaymentError as exc:
            raise CommandError(f"{type(exc).__name__}: {exc}") from exc

        if result.free:
            self.stdout.write(self.style.SUCCESS("Free game: booking settled by the server."))
        elif result.success:
            self.stdout.write(self.style.SUCCESS("Payment accepted by Stripe."))
        else:
            self.stdout.write(self.style.WARNING("Payment cancelled."))

        booking.refresh_from_db(fields=["fee_paid", "paid_at"])
        if booking.fee_paid:
            self.stdout.write(f"Booking {booking.pk} paid at {booking.paid_at:%Y-%m-%d %H:%M:%S}.")
        else:
            self.stdout.write(f"Booking {booking.pk} is awaiting webhook confirmation.")
