"""Issuance of the per-attempt email code."""

import logging

from email_otp.core.config import settings
from email_otp.core.errors import ConfigurationError, DeliveryError
from email_otp.schemas.challenge import Realm
from email_otp.schemas.user import UserRecord
from email_otp.services.attempts import AttemptState
from email_otp.services.notifier import Notifier
from email_otp.services.random_source import RandomSource, SystemRandomSource

logger = logging.getLogger(__name__)


def generate_code(digits: int, random_source: RandomSource) -> str:
    """Draw a uniform code in `[0, 10**digits)` and zero-pad it to `digits` characters."""
    return f"{random_source.randbelow(10 ** digits):0{digits}d}"


class CodeIssuer:
    """Makes sure exactly one code exists for an attempt and has been sent."""

    def __init__(
        self,
        notifier: Notifier,
        random_source: RandomSource | None = None,
        default_digits: int = settings.OTP_DEFAULT_DIGITS,
        max_digits: int = settings.OTP_MAX_DIGITS,
    ):
        self.notifier = notifier
        self.random_source = random_source or SystemRandomSource()
        self.default_digits = default_digits
        self.max_digits = max_digits

    def resolve_digits(self, realm: Realm) -> int:
        """Digit count from the realm policy, or the default when unreadable or out of range."""
        try:
            digits = int(realm.otp_policy.digits)
        except (AttributeError, TypeError, ValueError):
            logger.warning("OTP policy unreadable, using %s digits. realm=%s", self.default_digits, realm.name)
            return self.default_digits

        if not 1 <= digits <= self.max_digits:
            logger.warning(
                "OTP policy digits=%s out of range, using %s. realm=%s", digits, self.default_digits, realm.name
            )
            return self.default_digits
        return digits

    async def ensure(self, attempt: AttemptState, user: UserRecord, realm: Realm) -> None:
        """Issue and deliver a code unless the attempt already holds one.

        Re-rendering the challenge calls this again; an existing code is never
        regenerated or resent. Raises ConfigurationError when the user has no
        email address. Delivery failures are logged and do not abort issuance.
        """
        if attempt.code is not None:
            return

        if not user.has_email:
            logger.warning(
                "Could not send access code email due to missing email. realm=%s user=%s", realm.name, user.username
            )
            raise ConfigurationError(f"User {user.username} has no email address")

        digits = self.resolve_digits(realm)
        code = generate_code(digits, self.random_source)
        attempt.set_code(code)
        logger.info(
            "Issued %s-digit access code. realm=%s user=%s attempt=%s", digits, realm.name, user.username, attempt.attempt_id
        )

        try:
            await self.notifier.send(user, code, realm.display_label)
        except DeliveryError as exc:
            logger.error("Failed to send access code email. realm=%s user=%s error=%s", realm.name, user.username, exc)
        except Exception:
            logger.exception("Unexpected error sending access code email. realm=%s user=%s", realm.name, user.username)
