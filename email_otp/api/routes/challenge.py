"""HTTP route handlers that let a caller drive the email code step.

These handlers play the flow engine's part: they own the attempt lifecycle,
look up the user, and tear the attempt down on terminal outcomes.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from email_otp.api import deps
from email_otp.core.errors import AttemptNotFoundError, ConfigurationError
from email_otp.schemas.challenge import Failure, FlowReset, ReChallenge, Realm, Success, parse_action
from email_otp.schemas.otp import ChallengeResponse, OutcomeResponse, StartAttemptRequest
from email_otp.schemas.user import UserRecord
from email_otp.services.attempts import AttemptState, AttemptStore
from email_otp.services.challenge import ChallengeController
from email_otp.services.users import UserDirectory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth/email-code", tags=["email-code"])


async def _load_attempt(store: AttemptStore, attempt_id: str) -> AttemptState:
    try:
        return await store.get(attempt_id)
    except AttemptNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Authentication attempt not found or expired.")


async def _load_user(users: UserDirectory, user_id: int) -> UserRecord:
    user = await users.get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return user


async def _invalid_user(store: AttemptStore, attempt: AttemptState) -> HTTPException:
    """Tear down the attempt after a fatal configuration error."""
    await store.delete(attempt.attempt_id)
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="User cannot receive an access code. Contact your administrator.",
    )


@router.post("/attempts", response_model=ChallengeResponse, status_code=status.HTTP_201_CREATED)
async def start_attempt(
    payload: StartAttemptRequest,
    store: AttemptStore = Depends(deps.get_attempt_store),
    users: UserDirectory = Depends(deps.get_user_directory),
    controller: ChallengeController = Depends(deps.get_challenge_controller),
    realm: Realm = Depends(deps.get_realm),
) -> ChallengeResponse:
    """Enter the step for an identified user and send the first code."""

    user = await users.get_by_username(payload.username)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    attempt = await store.create(user_id=user.id, realm=realm.name)
    try:
        challenge = await controller.start(attempt, user)
    except ConfigurationError:
        raise await _invalid_user(store, attempt)

    await store.save(attempt)
    return ChallengeResponse(attempt_id=attempt.attempt_id, challenge=challenge)


@router.get("/attempts/{attempt_id}", response_model=ChallengeResponse)
async def show_challenge(
    attempt_id: str,
    store: AttemptStore = Depends(deps.get_attempt_store),
    users: UserDirectory = Depends(deps.get_user_directory),
    controller: ChallengeController = Depends(deps.get_challenge_controller),
) -> ChallengeResponse:
    """Re-render the challenge; never sends a second email for the same code."""

    attempt = await _load_attempt(store, attempt_id)
    user = await _load_user(users, attempt.user_id)
    try:
        challenge = await controller.challenge(attempt, user)
    except ConfigurationError:
        raise await _invalid_user(store, attempt)

    await store.save(attempt)
    return ChallengeResponse(attempt_id=attempt.attempt_id, challenge=challenge)


@router.post("/attempts/{attempt_id}", response_model=OutcomeResponse)
async def submit_action(
    attempt_id: str,
    request: Request,
    response: Response,
    store: AttemptStore = Depends(deps.get_attempt_store),
    users: UserDirectory = Depends(deps.get_user_directory),
    controller: ChallengeController = Depends(deps.get_challenge_controller),
) -> OutcomeResponse:
    """Handle a form post carrying `emailCode`, `resend` or `cancel`."""

    attempt = await _load_attempt(store, attempt_id)
    user = await _load_user(users, attempt.user_id)
    form = await request.form()
    action = parse_action({key: str(value) for key, value in form.items()})

    try:
        outcome = await controller.submit(attempt, user, action)
    except ConfigurationError:
        raise await _invalid_user(store, attempt)

    if isinstance(outcome, ReChallenge):
        await store.save(attempt)
        return OutcomeResponse(status="challenge", challenge=outcome.challenge)

    await store.delete(attempt.attempt_id)

    if isinstance(outcome, Success):
        return OutcomeResponse(status="success")
    if isinstance(outcome, FlowReset):
        return OutcomeResponse(status="reset")
    if isinstance(outcome, Failure):
        response.status_code = status.HTTP_403_FORBIDDEN
        return OutcomeResponse(status="failure", reason=outcome.reason, challenge=outcome.challenge)

    logger.error("Unexpected outcome %r for attempt %s", outcome, attempt_id)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unexpected step outcome.")
