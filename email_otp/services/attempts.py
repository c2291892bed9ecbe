"""Attempt-scoped notes and the stores that keep them between requests."""

import json
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from redis.asyncio import Redis

from email_otp.core.config import settings
from email_otp.core.errors import AttemptNotFoundError

CODE_NOTE = "code"

_redis_client: Optional[Redis] = None


def get_redis_client() -> Redis:
    """Return a lazily initialized Redis client shared across the service."""
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


async def close_redis_client() -> None:
    """Close the shared Redis client; invoked during application shutdown."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


@dataclass
class AttemptState:
    """One in-progress login attempt and its string-valued notes."""

    user_id: int
    realm: str
    attempt_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    notes: Dict[str, str] = field(default_factory=dict)

    @property
    def code(self) -> Optional[str]:
        return self.notes.get(CODE_NOTE)

    def set_code(self, code: str) -> None:
        self.notes[CODE_NOTE] = code

    def clear_code(self) -> None:
        self.notes.pop(CODE_NOTE, None)

    def to_json(self) -> str:
        return json.dumps({"attempt_id": self.attempt_id, "user_id": self.user_id, "realm": self.realm, "notes": self.notes})

    @classmethod
    def from_json(cls, raw: str) -> "AttemptState":
        data = json.loads(raw)
        return cls(user_id=data["user_id"], realm=data["realm"], attempt_id=data["attempt_id"], notes=data.get("notes") or {})


class AttemptStore(Protocol):
    async def create(self, user_id: int, realm: str) -> AttemptState: ...

    async def get(self, attempt_id: str) -> AttemptState: ...

    async def save(self, attempt: AttemptState) -> None: ...

    async def delete(self, attempt_id: str) -> None: ...


def _attempt_key(attempt_id: str) -> str:
    """Generate the Redis key that scopes notes to a single attempt."""
    return f"attempt:{attempt_id}"


class RedisAttemptStore:
    """Keeps each attempt as a JSON blob that expires with the attempt TTL."""

    def __init__(self, redis_client: Redis, ttl_seconds: int = settings.ATTEMPT_TTL_SECONDS):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    async def create(self, user_id: int, realm: str) -> AttemptState:
        attempt = AttemptState(user_id=user_id, realm=realm)
        await self.save(attempt)
        return attempt

    async def get(self, attempt_id: str) -> AttemptState:
        raw = await self.redis.get(_attempt_key(attempt_id))
        if raw is None:
            raise AttemptNotFoundError(attempt_id)
        return AttemptState.from_json(raw)

    async def save(self, attempt: AttemptState) -> None:
        # keepttl so re-saving mid-attempt does not extend its lifetime
        key = _attempt_key(attempt.attempt_id)
        if await self.redis.exists(key):
            await self.redis.set(key, attempt.to_json(), keepttl=True)
        else:
            await self.redis.set(key, attempt.to_json(), ex=self.ttl_seconds)

    async def delete(self, attempt_id: str) -> None:
        await self.redis.delete(_attempt_key(attempt_id))


class InMemoryAttemptStore:
    """
    Process-local attempt store.

    For development and testing only; attempts never expire.
    """

    def __init__(self):
        self._attempts: Dict[str, str] = {}

    async def create(self, user_id: int, realm: str) -> AttemptState:
        attempt = AttemptState(user_id=user_id, realm=realm)
        await self.save(attempt)
        return attempt

    async def get(self, attempt_id: str) -> AttemptState:
        raw = self._attempts.get(attempt_id)
        if raw is None:
            raise AttemptNotFoundError(attempt_id)
        return AttemptState.from_json(raw)

    async def save(self, attempt: AttemptState) -> None:
        self._attempts[attempt.attempt_id] = attempt.to_json()

    async def delete(self, attempt_id: str) -> None:
        self._attempts.pop(attempt_id, None)
