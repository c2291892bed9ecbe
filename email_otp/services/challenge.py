"""State machine driving the email code challenge for one attempt."""

import logging
from typing import Optional

from email_otp.schemas.challenge import (
    ACCOUNT_DISABLED,
    EMAIL_CODE_FIELD,
    INVALID_ACCESS_CODE,
    Cancel,
    ChallengeAction,
    Failure,
    FailureReason,
    FlowReset,
    FormMessage,
    Outcome,
    ReChallenge,
    Realm,
    RenderedChallenge,
    Resend,
    StepCapabilities,
    SubmitCode,
    Success,
)
from email_otp.schemas.user import UserRecord
from email_otp.services.attempts import AttemptState
from email_otp.services.issuer import CodeIssuer
from email_otp.services.lockout import FailureKind, LockoutPolicy

logger = logging.getLogger(__name__)


def parse_code(raw_code: Optional[str]) -> Optional[int]:
    """Parse a submitted code as a decimal integer; None when it is not one."""
    if raw_code is None:
        return None
    candidate = raw_code.strip()
    if not candidate.isdigit() or not candidate.isascii():
        return None
    try:
        return int(candidate)
    except ValueError:
        # longer than the interpreter's int conversion limit
        return None


class ChallengeController:
    """Presents the challenge, resolves user actions and reports outcomes.

    The controller never touches the flow engine directly: it returns an
    Outcome and leaves success, failure and flow resets to the caller.
    """

    capabilities = StepCapabilities()

    def __init__(self, issuer: CodeIssuer, lockout: LockoutPolicy, realm: Realm):
        self.issuer = issuer
        self.lockout = lockout
        self.realm = realm

    async def start(self, attempt: AttemptState, user: UserRecord) -> RenderedChallenge:
        """Ensure a code has been sent and render the challenge without errors."""
        return await self.challenge(attempt, user)

    async def challenge(
        self, attempt: AttemptState, user: UserRecord, error: Optional[str] = None, field: Optional[str] = None
    ) -> RenderedChallenge:
        """Render the challenge, issuing a code first if the attempt has none."""
        await self.issuer.ensure(attempt, user, self.realm)
        form_error = FormMessage(message=error, field=field) if error is not None else None
        return RenderedChallenge(
            attempt_id=attempt.attempt_id,
            code_length=len(attempt.code or ""),
            error=form_error,
        )

    async def submit(self, attempt: AttemptState, user: UserRecord, action: ChallengeAction) -> Outcome:
        """Resolve one user action against the attempt."""
        if not user.enabled:
            logger.info("Rejected submission from disabled user. realm=%s user=%s", self.realm.name, user.username)
            return Failure(FailureReason.USER_DISABLED, self._annotated(attempt.attempt_id, ACCOUNT_DISABLED))

        status = await self.lockout.check(user)
        if status.blocked:
            logger.info("Rejected submission from locked out user. realm=%s user=%s", self.realm.name, user.username)
            challenge = self._annotated(attempt.attempt_id, status.message or INVALID_ACCESS_CODE)
            return Failure(FailureReason.LOCKED_OUT, challenge)

        if isinstance(action, Resend):
            attempt.clear_code()
            await self.issuer.ensure(attempt, user, self.realm)
            return ReChallenge(await self.challenge(attempt, user))

        if isinstance(action, Cancel):
            attempt.clear_code()
            return FlowReset()

        if isinstance(action, SubmitCode):
            if self._validate(attempt, parse_code(action.raw_code)):
                attempt.clear_code()
                await self.lockout.record_success(user)
                logger.info("Access code accepted. realm=%s user=%s", self.realm.name, user.username)
                return Success()

            await self.lockout.record_failure(user, FailureKind.INVALID_CREDENTIALS)
            logger.info("Invalid access code. realm=%s user=%s", self.realm.name, user.username)
            return ReChallenge(await self.challenge(attempt, user, INVALID_ACCESS_CODE, EMAIL_CODE_FIELD))

        raise TypeError(f"Unsupported challenge action: {action!r}")

    @staticmethod
    def _validate(attempt: AttemptState, given: Optional[int]) -> bool:
        if given is None or attempt.code is None:
            return False
        return given == int(attempt.code)

    def _annotated(self, attempt_id: str, message: str) -> RenderedChallenge:
        # The stored code is neither read nor reissued here.
        return RenderedChallenge(
            attempt_id=attempt_id,
            code_length=self.issuer.resolve_digits(self.realm),
            error=FormMessage(message=message),
        )
