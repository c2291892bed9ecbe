"""Exception types raised by the email code step."""

from email_otp.schemas.challenge import FailureReason


class EmailOtpError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(EmailOtpError):
    """The user cannot receive a code; fatal for the current attempt."""

    reason = FailureReason.INVALID_USER


class DeliveryError(EmailOtpError):
    """A notifier failed to transmit the code. Logged, never fatal."""


class AttemptNotFoundError(EmailOtpError):
    """No live attempt exists for the given id (unknown or expired)."""
