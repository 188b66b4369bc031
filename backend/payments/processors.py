"""
Hosted payment collection, one variant per client platform.

The variant is picked once from the PAYMENT_PLATFORM setting; callers only
see the `PaymentProcessor` interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Protocol

from django.conf import settings

from .exceptions import ConfigurationError, PaymentFailed, UnsupportedPlatform

NATIVE = "native"
WEB = "web"


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    free: bool = False


@dataclass(frozen=True)
class SheetError:
    code: str
    message: str

    CANCELED = "Canceled"
    FAILED = "Failed"

    @property
    def is_cancel(self) -> bool:
        return self.code == self.CANCELED


class PaymentSheet(Protocol):
    """A hosted payment UI: configured with a client secret, then shown once."""

    def init(self, *, client_secret: str, merchant_display_name: str, style: str) -> Optional[SheetError]:
        ...

    def present(self) -> Optional[SheetError]:
        ...


class PaymentProcessor(ABC):
    platform: str = ""

    def ensure_supported(self) -> None:
        """Raise before any payment UI is touched when paid checkout is impossible."""

    @abstractmethod
    def collect(self, client_secret: str) -> PaymentResult:
        raise NotImplementedError


class NativePaymentProcessor(PaymentProcessor):
    platform = NATIVE

    def __init__(self, sheet: PaymentSheet, *, merchant_display_name: str, style: str = "alwaysLight"):
        self.sheet = sheet
        self.merchant_display_name = merchant_display_name
        self.style = style

    def collect(self, client_secret: str) -> PaymentResult:
        error = self.sheet.init(
            client_secret=client_secret,
            merchant_display_name=self.merchant_display_name,
            style=self.style,
        )
        if error is not None:
            raise PaymentFailed(error.message, code=error.code)

        error = self.sheet.present()
        if error is not None:
            if error.is_cancel:
                return PaymentResult(success=False)
            raise PaymentFailed(error.message, code=error.code)

        return PaymentResult(success=True)


class WebPaymentProcessor(PaymentProcessor):
    """No hosted sheet on the web build: only free games can be booked there."""

    platform = WEB
    message = "Payments are not supported in the web version. Please use the mobile app."

    def ensure_supported(self) -> None:
        raise UnsupportedPlatform(self.message)

    def collect(self, client_secret: str) -> PaymentResult:
        raise UnsupportedPlatform(self.message)


def build_payment_processor(
    platform: str | None = None,
    *,
    sheet: PaymentSheet | None = None,
) -> PaymentProcessor:
    platform = (platform or getattr(settings, "PAYMENT_PLATFORM", NATIVE)).lower()
    if platform == WEB:
        return WebPaymentProcessor()
    if platform == NATIVE:
        if sheet is None:
            raise ConfigurationError("The native payment processor needs a payment sheet.")
        return NativePaymentProcessor(
            sheet,
            merchant_display_name=getattr(settings, "STRIPE_MERCHANT_DISPLAY_NAME", "Pickleball Booking"),
        )
    raise ConfigurationError(f"Unknown PAYMENT_PLATFORM {platform!r}.")
