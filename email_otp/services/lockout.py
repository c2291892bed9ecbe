"""
Brute-force protection consulted by the challenge controller.

The step itself never decides whether a user is blocked; it asks a
LockoutPolicy before evaluating a submission and reports wrong codes back.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Protocol

from redis.asyncio import Redis

from email_otp.core.config import settings
from email_otp.schemas.user import UserRecord

TEMPORARILY_LOCKED = "Too many failed attempts. Try again later."


class FailureKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_user_credentials"


@dataclass
class LockoutStatus:
    """Lockout check result; `retry_after` is seconds until the block lifts."""
    blocked: bool
    message: str = ""
    retry_after: int | None = None


class LockoutPolicy(Protocol):
    async def check(self, user: UserRecord) -> LockoutStatus: ...

    async def record_failure(self, user: UserRecord, kind: FailureKind) -> None: ...

    async def record_success(self, user: UserRecord) -> None: ...


class NoLockoutPolicy:
    """Never blocks. Used when LOCKOUT_ENABLED is off."""

    async def check(self, user: UserRecord) -> LockoutStatus:
        return LockoutStatus(blocked=False)

    async def record_failure(self, user: UserRecord, kind: FailureKind) -> None:
        return None

    async def record_success(self, user: UserRecord) -> None:
        return None


def _lockout_key(user: UserRecord) -> str:
    return f"lockout:{user.id}"


class RedisLockoutPolicy:
    """
    Counts consecutive failures per user in Redis.

    Once `max_failures` is reached the user stays blocked until the counter
    expires, `wait_seconds` after the last failure.
    """

    def __init__(
        self,
        redis_client: Redis,
        max_failures: int = settings.LOCKOUT_MAX_FAILURES,
        wait_seconds: int = settings.LOCKOUT_WAIT_SECONDS,
    ):
        self.redis = redis_client
        self.max_failures = max_failures
        self.wait_seconds = wait_seconds

    async def check(self, user: UserRecord) -> LockoutStatus:
        key = _lockout_key(user)
        count = await self.redis.get(key)
        if count is None or int(count) < self.max_failures:
            return LockoutStatus(blocked=False)
        ttl = await self.redis.ttl(key)
        return LockoutStatus(blocked=True, message=TEMPORARILY_LOCKED, retry_after=max(ttl, 0))

    async def record_failure(self, user: UserRecord, kind: FailureKind) -> None:
        key = _lockout_key(user)
        pipe = self.redis.pipeline()
        pipe.incr(key)
        pipe.expire(key, self.wait_seconds)
        await pipe.execute()

    async def record_success(self, user: UserRecord) -> None:
        await self.redis.delete(_lockout_key(user))


class InMemoryLockoutPolicy:
    """
    Process-local failure counter.

    For development and testing only.
    Use RedisLockoutPolicy in production.
    """

    def __init__(self, max_failures: int = 5, wait_seconds: int = 900):
        self.max_failures = max_failures
        self.wait_seconds = wait_seconds
        self._failures: Dict[int, dict] = {}

    async def check(self, user: UserRecord) -> LockoutStatus:
        entry = self._failures.get(user.id)
        now = time.time()
        if entry is None or entry["expires_at"] <= now:
            self._failures.pop(user.id, None)
            return LockoutStatus(blocked=False)
        if entry["count"] < self.max_failures:
            return LockoutStatus(blocked=False)
        return LockoutStatus(blocked=True, message=TEMPORARILY_LOCKED, retry_after=int(entry["expires_at"] - now))

    async def record_failure(self, user: UserRecord, kind: FailureKind) -> None:
        now = time.time()
        entry = self._failures.get(user.id)
        if entry is None or entry["expires_at"] <= now:
            entry = {"count": 0}
        entry["count"] += 1
        entry["expires_at"] = now + self.wait_seconds
        self._failures[user.id] = entry

    async def record_success(self, user: UserRecord) -> None:
        self._failures.pop(user.id, None)
