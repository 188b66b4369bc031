class PaymentError(Exception):
    """Base class for payment flow failures."""


class ConfigurationError(PaymentError):
    """A required secret or client setting is missing."""


class InvalidSignature(PaymentError):
    """A webhook payload failed the processor's authenticity check."""


class UnsupportedPlatform(PaymentError):
    """A paid checkout was attempted where no hosted payment UI exists."""


class RemoteFunctionError(PaymentError):
    """The intent-creation function answered with an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PaymentFailed(PaymentError):
    """The hosted payment UI reported a failure."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code
