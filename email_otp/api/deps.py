"""Dependency providers used by FastAPI endpoints.

These helpers expose database sessions, Redis clients, and the composed
email code step through FastAPI's dependency injection system so route
handlers remain thin. Tests replace the stores via `dependency_overrides`.
"""

from typing import AsyncGenerator

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from email_otp.core.config import settings
from email_otp.db.session import get_session
from email_otp.schemas.challenge import OtpPolicy, Realm
from email_otp.services.attempts import AttemptStore, RedisAttemptStore, get_redis_client
from email_otp.services.challenge import ChallengeController
from email_otp.services.issuer import CodeIssuer
from email_otp.services.lockout import LockoutPolicy, NoLockoutPolicy, RedisLockoutPolicy
from email_otp.services.notifier import Notifier, get_notifier as _get_notifier
from email_otp.services.users import SqlUserDirectory, UserDirectory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async SQLAlchemy session tied to the shared engine."""

    async for session in get_session():
        yield session


def get_redis() -> Redis:
    """Return a singleton Redis client used for attempt notes and lockout counters."""
    return get_redis_client()


def get_realm() -> Realm:
    """Realm served by this process, built from settings."""
    return Realm(
        name=settings.REALM_NAME,
        display_name=settings.REALM_DISPLAY_NAME,
        otp_policy=OtpPolicy(digits=settings.REALM_OTP_DIGITS),
    )


def get_attempt_store(redis: Redis = Depends(get_redis)) -> AttemptStore:
    return RedisAttemptStore(redis)


def get_user_directory(session: AsyncSession = Depends(get_db_session)) -> UserDirectory:
    return SqlUserDirectory(session)


def get_lockout_policy(redis: Redis = Depends(get_redis)) -> LockoutPolicy:
    if not settings.LOCKOUT_ENABLED:
        return NoLockoutPolicy()
    return RedisLockoutPolicy(redis)


def get_notifier() -> Notifier:
    return _get_notifier()


def get_challenge_controller(
    realm: Realm = Depends(get_realm),
    lockout: LockoutPolicy = Depends(get_lockout_policy),
    notifier: Notifier = Depends(get_notifier),
) -> ChallengeController:
    """Assemble the controller with its issuer and lockout collaborators."""

    return ChallengeController(issuer=CodeIssuer(notifier), lockout=lockout, realm=realm)
