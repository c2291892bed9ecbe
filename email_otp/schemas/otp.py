"""Pydantic schemas for the HTTP surface of the email code step."""

from typing import Literal

from pydantic import BaseModel

from email_otp.schemas.challenge import FailureReason, RenderedChallenge


class StartAttemptRequest(BaseModel):
    """Payload naming the already-identified user entering the step."""

    username: str


class ChallengeResponse(BaseModel):
    """Challenge view returned when an attempt starts or is re-rendered."""

    attempt_id: str
    challenge: RenderedChallenge


class OutcomeResponse(BaseModel):
    """Result of a submitted action, as reported to the caller."""

    status: Literal["challenge", "success", "failure", "reset"]
    challenge: RenderedChallenge | None = None
    reason: FailureReason | None = None
