"""Payment errors."""


class PaymentError(Exception):
    """Base class for payment errors."""


class PaymentConfigurationError(PaymentError):
    """A provider credential or secret is missing."""


class InvalidSignatureError(PaymentError):
    """A callback or webhook failed signature verification."""


class PaymentMethodUnavailableError(PaymentError):
    """Unknown method, or the amount is outside the method's limits."""
