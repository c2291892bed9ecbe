from email_otp.schemas.challenge import (
    Cancel,
    Failure,
    FailureReason,
    FlowReset,
    FormMessage,
    OtpPolicy,
    ReChallenge,
    Realm,
    RenderedChallenge,
    Resend,
    StepCapabilities,
    SubmitCode,
    Success,
    parse_action,
)
from email_otp.schemas.otp import ChallengeResponse, OutcomeResponse, StartAttemptRequest
from email_otp.schemas.user import UserRecord

__all__ = [
    "Cancel",
    "ChallengeResponse",
    "Failure",
    "FailureReason",
    "FlowReset",
    "FormMessage",
    "OtpPolicy",
    "OutcomeResponse",
    "ReChallenge",
    "Realm",
    "RenderedChallenge",
    "Resend",
    "StartAttemptRequest",
    "StepCapabilities",
    "SubmitCode",
    "Success",
    "UserRecord",
    "parse_action",
]
