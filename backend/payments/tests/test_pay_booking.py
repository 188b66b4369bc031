import types
import uuid
from io import StringIO

import pytest
import stripe
from django.core.management import CommandError, call_command

from bookings.models import Booking
from bookings.services.payments import prepare_booking_payment
from payments.processors import SheetError
from payments.sheets import StripeTestCardSheet


class InProcessFunctions:
    def create_payment_intent(self, booking_id):
        booking = Booking.objects.select_related("game").get(pk=booking_id)
        return prepare_booking_payment(booking).as_dict()


@pytest.fixture
def in_process_functions(monkeypatch):
    monkeypatch.setattr(
        "payments.management.commands.pay_booking.IntentFunctionClient.from_settings",
        lambda access_token: InProcessFunctions(),
    )


@pytest.mark.django_db
def test_free_booking_is_paid_by_command(in_process_functions, free_game, player):
    booking = Booking.objects.create(game=free_game, user=player)
    out = StringIO()

    call_command("pay_booking", str(booking.id), stdout=out)

    assert "Free game" in out.getvalue()
    assert f"Booking {booking.id} paid at" in out.getvalue()


@pytest.mark.django_db
def test_paid_booking_without_stripe_key_fails(in_process_functions, settings, booking):
    settings.STRIPE_SECRET_KEY = ""

    with pytest.raises(CommandError, match="ConfigurationError"):
        call_command("pay_booking", str(booking.id), stdout=StringIO())


@pytest.mark.django_db
def test_web_platform_refuses_paid_booking(in_process_functions, booking):
    with pytest.raises(CommandError, match="UnsupportedPlatform"):
        call_command("pay_booking", str(booking.id), "--platform", "web", stdout=StringIO())


@pytest.mark.django_db
def test_unknown_booking_fails():
    with pytest.raises(CommandError, match="does not exist"):
        call_command("pay_booking", str(uuid.uuid4()), stdout=StringIO())


def test_test_card_sheet_requires_test_key():
    sheet = StripeTestCardSheet(api_key="sk_live_123")

    error = sheet.init(client_secret="pi_1_secret_x", merchant_display_name="Pickleball Booking", style="alwaysLight")

    assert error.code == SheetError.FAILED


def test_test_card_sheet_confirms_intent(monkeypatch):
    captured = {}
    original_api_key = stripe.api_key

    def fake_confirm(intent_id, **kwargs):
        captured.update(intent_id=intent_id, **kwargs)
        return types.SimpleNamespace(status="succeeded")

    monkeypatch.setattr(stripe.PaymentIntent, "confirm", staticmethod(fake_confirm))
    sheet = StripeTestCardSheet(api_key="sk_test_123")

    try:
        assert sheet.init(client_secret="pi_1_secret_x", merchant_display_name="x", style="alwaysLight") is None
        assert sheet.present() is None
    finally:
        stripe.api_key = original_api_key

    assert captured == {"intent_id": "pi_1", "payment_method": "pm_card_visa"}


def test_test_card_sheet_reports_declines(monkeypatch):
    original_api_key = stripe.api_key

    def fake_confirm(intent_id, **kwargs):
        raise stripe.CardError("Your card was declined.", param=None, code="card_declined")

    monkeypatch.setattr(stripe.PaymentIntent, "confirm", staticmethod(fake_confirm))
    sheet = StripeTestCardSheet(api_key="sk_test_123")
    sheet.init(client_secret="pi_1_secret_x", merchant_display_name="x", style="alwaysLight")

    try:
        error = sheet.present()
    finally:
        stripe.api_key = original_api_key

    assert error.code == SheetError.FAILED
    assert "declined" in error.message
