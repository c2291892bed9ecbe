"""Value types exchanged between the issuer, the controller and the flow engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union

from pydantic import BaseModel

EMAIL_CODE_FIELD = "emailCode"
RESEND_ACTION = "resend"
CANCEL_ACTION = "cancel"

INVALID_ACCESS_CODE = "Invalid access code."
ACCOUNT_DISABLED = "Account is disabled, contact your administrator."


class FailureReason(str, Enum):
    """Why the step reported a terminal failure to the flow engine."""

    INVALID_CREDENTIALS = "invalid_credentials"
    LOCKED_OUT = "locked_out"
    USER_DISABLED = "user_disabled"
    INVALID_USER = "invalid_user"


class OtpPolicy(BaseModel):
    """Realm OTP policy; only the digit count matters to this step."""

    digits: int = 8


class Realm(BaseModel):
    """Realm the attempt belongs to."""

    name: str
    display_name: Optional[str] = None
    otp_policy: Optional[OtpPolicy] = None

    @property
    def display_label(self) -> str:
        return self.display_name or self.name


class FormMessage(BaseModel):
    """Error annotation on the challenge; `field` is None for a general error."""

    message: str
    field: Optional[str] = None


class RenderedChallenge(BaseModel):
    """View model for the challenge page."""

    attempt_id: str
    code_length: int
    error: Optional[FormMessage] = None
    code_field: str = EMAIL_CODE_FIELD
    resend_action: str = RESEND_ACTION
    cancel_action: str = CANCEL_ACTION


# -----------------------
# Actions
# -----------------------
@dataclass(frozen=True)
class SubmitCode:
    raw_code: str


@dataclass(frozen=True)
class Resend:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


ChallengeAction = Union[SubmitCode, Resend, Cancel]


def parse_action(form: Mapping[str, str]) -> ChallengeAction:
    """Map submitted form fields to an action; resend wins over cancel."""
    if RESEND_ACTION in form:
        return Resend()
    if CANCEL_ACTION in form:
        return Cancel()
    return SubmitCode(raw_code=form.get(EMAIL_CODE_FIELD) or "")


# -----------------------
# Outcomes
# -----------------------
@dataclass(frozen=True)
class ReChallenge:
    challenge: RenderedChallenge

    @property
    def error(self) -> Optional[FormMessage]:
        return self.challenge.error


@dataclass(frozen=True)
class Success:
    pass


@dataclass(frozen=True)
class Failure:
    reason: FailureReason
    challenge: Optional[RenderedChallenge] = None


@dataclass(frozen=True)
class FlowReset:
    pass


Outcome = Union[ReChallenge, Success, Failure, FlowReset]


@dataclass(frozen=True)
class StepCapabilities:
    """Static registration flags the flow engine reads once per attempt."""

    requires_user: bool = True
    configured_for_all_users: bool = True
    sets_required_actions: bool = False
