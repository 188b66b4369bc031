"""
Typed view of the Stripe event envelopes the reconciler cares about.

Payloads are decoded field by field; anything unexpected degrades to
`UnknownEvent` or to a missing attribute instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union

PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_INTENT_FAILED = "payment_intent.payment_failed"


@dataclass(frozen=True)
class PaymentIntentSucceeded:
    event_id: str | None
    payment_intent_id: str | None
    booking_id: str | None
    amount: int | None = None
    currency: str | None = None

    type = PAYMENT_INTENT_SUCCEEDED


@dataclass(frozen=True)
class PaymentIntentFailed:
    event_id: str | None
    payment_intent_id: str | None
    booking_id: str | None
    failure_message: str | None = None

    type = PAYMENT_INTENT_FAILED


@dataclass(frozen=True)
class UnknownEvent:
    event_id: str | None
    type: str


WebhookEvent = Union[PaymentIntentSucceeded, PaymentIntentFailed, UnknownEvent]


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _string(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _integer(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _booking_id(data: Mapping[str, Any], obj: Mapping[str, Any]) -> str | None:
    metadata = _mapping(obj.get("metadata")) or _mapping(data.get("metadata"))
    return _string(metadata.get("booking_id"))


def decode_event(payload: Any) -> WebhookEvent:
    """Decode a verified event envelope; raises ValueError if it is not a JSON object."""

    if not isinstance(payload, Mapping):
        raise ValueError("Event payload must be a JSON object.")

    event_id = _string(payload.get("id"))
    event_type = _string(payload.get("type")) or ""
    data = _mapping(payload.get("data"))
    obj = _mapping(data.get("object"))

    if event_type == PAYMENT_INTENT_SUCCEEDED:
        return PaymentIntentSucceeded(
            event_id=event_id,
            payment_intent_id=_string(obj.get("id")),
            booking_id=_booking_id(data, obj),
            amount=_integer(obj.get("amount_received", obj.get("amount"))),
            currency=_string(obj.get("currency")),
        )
    if event_type == PAYMENT_INTENT_FAILED:
        last_error = _mapping(obj.get("last_payment_error"))
        return PaymentIntentFailed(
            event_id=event_id,
            payment_intent_id=_string(obj.get("id")),
            booking_id=_booking_id(data, obj),
            failure_message=_string(last_error.get("message")),
        )
    return UnknownEvent(event_id=event_id, type=event_type)
