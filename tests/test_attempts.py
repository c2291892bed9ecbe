"""
Tests for attempt state and stores
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from email_otp.core.errors import AttemptNotFoundError
from email_otp.services.attempts import AttemptState, InMemoryAttemptStore, RedisAttemptStore


class TestAttemptState:
    def test_code_note_lifecycle(self):
        attempt = AttemptState(user_id=1, realm="acme")
        assert attempt.code is None

        attempt.set_code("004821")
        assert attempt.code == "004821"

        attempt.clear_code()
        attempt.clear_code()
        assert attempt.code is None

    def test_attempts_do_not_share_notes(self):
        first = AttemptState(user_id=1, realm="acme")
        second = AttemptState(user_id=1, realm="acme")

        first.set_code("1")

        assert second.code is None
        assert first.attempt_id != second.attempt_id

    def test_json_keeps_leading_zeros(self):
        attempt = AttemptState(user_id=1, realm="acme")
        attempt.set_code("000042")

        restored = AttemptState.from_json(attempt.to_json())

        assert restored == attempt
        assert restored.code == "000042"


class TestInMemoryAttemptStore:
    @pytest.mark.asyncio
    async def test_create_get_delete(self):
        store = InMemoryAttemptStore()
        attempt = await store.create(user_id=1, realm="acme")
        attempt.set_code("123")
        await store.save(attempt)

        assert (await store.get(attempt.attempt_id)).code == "123"

        await store.delete(attempt.attempt_id)
        with pytest.raises(AttemptNotFoundError):
            await store.get(attempt.attempt_id)

    @pytest.mark.asyncio
    async def test_get_returns_copy(self):
        store = InMemoryAttemptStore()
        attempt = await store.create(user_id=1, realm="acme")

        loaded = await store.get(attempt.attempt_id)
        loaded.set_code("9")

        assert (await store.get(attempt.attempt_id)).code is None


class TestRedisAttemptStore:
    @pytest.mark.asyncio
    async def test_new_attempt_saved_with_ttl(self):
        redis = MagicMock()
        redis.exists = AsyncMock(return_value=0)
        redis.set = AsyncMock()
        store = RedisAttemptStore(redis, ttl_seconds=300)

        attempt = await store.create(user_id=1, realm="acme")

        key, raw = redis.set.call_args.args
        assert key == f"attempt:{attempt.attempt_id}"
        assert AttemptState.from_json(raw) == attempt
        assert redis.set.call_args.kwargs == {"ex": 300}

    @pytest.mark.asyncio
    async def test_resave_keeps_ttl(self):
        redis = MagicMock()
        redis.exists = AsyncMock(return_value=1)
        redis.set = AsyncMock()
        store = RedisAttemptStore(redis, ttl_seconds=300)

        await store.save(AttemptState(user_id=1, realm="acme"))

        assert redis.set.call_args.kwargs == {"keepttl": True}

    @pytest.mark.asyncio
    async def test_missing_attempt(self):
        redis = MagicMock()
        redis.get = AsyncMock(return_value=None)

        with pytest.raises(AttemptNotFoundError):
            await RedisAttemptStore(redis).get("nope")
