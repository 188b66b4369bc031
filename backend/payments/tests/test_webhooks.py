import hashlib
import hmac
import json
import smtplib
import time
import uuid
from datetime import datetime, timezone as dt_timezone

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from bookings.models import Booking
from notifications.models import Notification
from payments.api import StripeWebhookView
from payments.exceptions import ConfigurationError
from payments.models import Payment
from payments.store import DjangoBookingStore
from payments.webhooks import WebhookReconciler

SECRET = "whsec_test"
FIXED_NOW = datetime(2026, 5, 1, 18, 30, tzinfo=dt_timezone.utc)


def sign(payload: str, secret: str = SECRET, timestamp: int | None = None) -> str:
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def succeeded_event(booking_id=None, intent_id="pi_test_123") -> str:
    metadata = {} if booking_id is None else {"booking_id": str(booking_id)}
    return json.dumps(
        {
            "id": "evt_123",
            "type": "payment_intent.succeeded",
            "data": {"object": {"id": intent_id, "amount": 1250, "currency": "usd", "metadata": metadata}},
        }
    )


def post_event(payload: str, signature: str | None = None):
    client = APIClient()
    extra = {} if signature is None else {"HTTP_STRIPE_SIGNATURE": signature}
    return client.post(
        reverse("stripe-webhook"),
        data=payload,
        content_type="application/json",
        **extra,
    )


@pytest.fixture
def reconciler():
    return WebhookReconciler(webhook_secret=SECRET, store=DjangoBookingStore(), clock=lambda: FIXED_NOW)


@pytest.mark.django_db
def test_succeeded_event_marks_booking_paid(booking):
    payload = succeeded_event(booking.id)

    response = post_event(payload, sign(payload))

    assert response.status_code == 200
    assert response.json() == {"received": True}
    booking.refresh_from_db()
    assert booking.fee_paid is True
    assert booking.paid_at is not None


@pytest.mark.django_db
def test_redelivery_keeps_first_paid_at(booking, reconciler):
    payload = succeeded_event(booking.id)
    first = reconciler.handle(payload.encode(), sign(payload))
    booking.refresh_from_db()
    first_paid_at = booking.paid_at

    reconciler.clock = lambda: FIXED_NOW.replace(hour=20)
    second = reconciler.handle(payload.encode(), sign(payload))

    assert first.status == second.status == 200
    booking.refresh_from_db()
    assert booking.fee_paid is True
    assert booking.paid_at == first_paid_at == FIXED_NOW
    assert Notification.objects.filter(type=Notification.PAYMENT_RECEIVED).count() == 1


@pytest.mark.django_db
def test_paid_event_updates_payment_record_and_notifies(booking, reconciler, mailoutbox):
    Payment.objects.create(
        booking=booking,
        amount_cents=1250,
        currency="usd",
        stripe_payment_intent="pi_test_123",
    )
    payload = succeeded_event(booking.id)

    response = reconciler.handle(payload.encode(), sign(payload))

    assert response.status == 200
    assert Payment.objects.get(stripe_payment_intent="pi_test_123").status == Payment.SUCCEEDED
    notification = Notification.objects.get(user=booking.user, type=Notification.PAYMENT_RECEIVED)
    assert notification.email_sent is True
    assert mailoutbox[0].to == ["player@example.com"]


@pytest.mark.django_db
def test_mail_outage_does_not_undo_paid_booking(booking, monkeypatch):
    def broken_send_mail(*args, **kwargs):
        raise smtplib.SMTPException("smtp down")

    monkeypatch.setattr("notifications.emails.send_mail", broken_send_mail)
    payload = succeeded_event(booking.id)

    response = post_event(payload, sign(payload))

    assert response.status_code == 200
    booking.refresh_from_db()
    assert booking.fee_paid is True
    notification = Notification.objects.get(user=booking.user, type=Notification.PAYMENT_RECEIVED)
    assert notification.email_sent is False


@pytest.mark.django_db
def test_notification_failure_after_payment_keeps_booking_paid(booking, monkeypatch):
    def broken_notify(**kwargs):
        raise RuntimeError("notifications table locked")

    monkeypatch.setattr("payments.store.notify", broken_notify)

    marked = DjangoBookingStore().mark_paid(str(booking.id), paid_at=FIXED_NOW, payment_intent_id="pi_test_123")

    assert marked is True
    booking.refresh_from_db()
    assert booking.fee_paid is True
    assert booking.paid_at == FIXED_NOW

@pytest.mark.django_db
def test_missing_metadata_is_acknowledged_without_writes(booking):
    payload = succeeded_event(None)

    response = post_event(payload, sign(payload))

    assert response.status_code == 200
    booking.refresh_from_db()
    assert booking.fee_paid is False


@pytest.mark.django_db
def test_missing_signature_is_rejected(booking):
    payload = succeeded_event(booking.id)

    response = post_event(payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing signature"}
    booking.refresh_from_db()
    assert booking.fee_paid is False


@pytest.mark.django_db
def test_invalid_signature_is_rejected_without_writes(booking):
    payload = succeeded_event(booking.id)

    response = post_event(payload, sign(payload, secret="whsec_wrong"))

    assert response.status_code == 400
    assert "error" in response.json()
    booking.refresh_from_db()
    assert booking.fee_paid is False


@pytest.mark.django_db
def test_tampered_body_is_rejected(booking):
    payload = succeeded_event(booking.id)
    signature = sign(payload)
    tampered = payload.replace("1250", "1")

    response = post_event(tampered, signature)

    assert response.status_code == 400
    booking.refresh_from_db()
    assert booking.fee_paid is False


@pytest.mark.django_db
def test_stale_signature_is_rejected(booking):
    payload = succeeded_event(booking.id)

    response = post_event(payload, sign(payload, timestamp=int(time.time()) - 3600))

    assert response.status_code == 400


@pytest.mark.django_db
def test_other_event_types_are_acknowledged(booking):
    payload = json.dumps(
        {
            "id": "evt_456",
            "type": "charge.refunded",
            "data": {"object": {"id": "ch_1", "metadata": {"booking_id": str(booking.id)}}},
        }
    )

    response = post_event(payload, sign(payload))

    assert response.status_code == 200
    booking.refresh_from_db()
    assert booking.fee_paid is False


@pytest.mark.django_db
def test_failed_payment_event_leaves_booking_unpaid(booking):
    payload = json.dumps(
        {
            "id": "evt_789",
            "type": "payment_intent.payment_failed",
            "data": {
                "object": {
                    "id": "pi_test_123",
                    "metadata": {"booking_id": str(booking.id)},
                    "last_payment_error": {"message": "Your card was declined."},
                }
            },
        }
    )

    response = post_event(payload, sign(payload))

    assert response.status_code == 200
    booking.refresh_from_db()
    assert booking.fee_paid is False


@pytest.mark.django_db
@pytest.mark.parametrize("booking_id", [uuid.uuid4(), "not-a-uuid"])
def test_unknown_booking_is_acknowledged(booking_id):
    payload = succeeded_event(booking_id)

    response = post_event(payload, sign(payload))

    assert response.status_code == 200
    assert not Booking.objects.filter(fee_paid=True).exists()


@pytest.mark.django_db
def test_non_json_body_is_rejected():
    payload = "not json"

    response = post_event(payload, sign(payload))

    assert response.status_code == 400


@pytest.mark.django_db
def test_store_failure_returns_server_error(booking):
    class BrokenStore:
        def mark_paid(self, booking_id, *, paid_at, payment_intent_id=None):
            raise RuntimeError("database unavailable")

    reconciler = WebhookReconciler(webhook_secret=SECRET, store=BrokenStore())
    payload = succeeded_event(booking.id)

    response = reconciler.handle(payload.encode(), sign(payload))

    assert response.status == 500
    assert response.body == {"error": "database unavailable"}


@pytest.mark.django_db
def test_view_uses_injected_reconciler(rf, booking):
    calls = []

    class RecordingStore:
        def mark_paid(self, booking_id, *, paid_at, payment_intent_id=None):
            calls.append((booking_id, payment_intent_id))
            return True

    view = StripeWebhookView.as_view(
        reconciler=WebhookReconciler(webhook_secret="whsec_other", store=RecordingStore())
    )
    payload = succeeded_event(booking.id)
    request = rf.post(
        "/api/webhooks/stripe/",
        data=payload,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=sign(payload, secret="whsec_other"),
    )

    response = view(request)

    assert response.status_code == 200
    assert calls == [(str(booking.id), "pi_test_123")]


@pytest.mark.django_db
def test_missing_webhook_secret_is_a_server_error(settings, booking):
    settings.STRIPE_WEBHOOK_SECRET = ""
    payload = succeeded_event(booking.id)

    response = post_event(payload, sign(payload))

    assert response.status_code == 500
    booking.refresh_from_db()
    assert booking.fee_paid is False


def test_reconciler_requires_secret():
    with pytest.raises(ConfigurationError):
        WebhookReconciler(webhook_secret="", store=DjangoBookingStore())
