"""Shared fixtures for the email code step tests."""

from unittest.mock import AsyncMock

import pytest

from email_otp.schemas.challenge import OtpPolicy, Realm
from email_otp.schemas.user import UserRecord
from email_otp.services.attempts import AttemptState
from email_otp.services.challenge import ChallengeController
from email_otp.services.issuer import CodeIssuer
from email_otp.services.lockout import InMemoryLockoutPolicy


class ScriptedRandomSource:
    """Returns queued values in order and remembers every bound it was asked for."""

    def __init__(self, *values: int):
        self.values = list(values)
        self.bounds = []

    def randbelow(self, upper_bound: int) -> int:
        self.bounds.append(upper_bound)
        return self.values.pop(0)


@pytest.fixture
def realm():
    return Realm(name="acme", display_name="Acme Corp", otp_policy=OtpPolicy(digits=6))


@pytest.fixture
def user():
    return UserRecord(id=1, username="alice", email="alice@example.com")


@pytest.fixture
def attempt(user, realm):
    return AttemptState(user_id=user.id, realm=realm.name)


@pytest.fixture
def notifier():
    return AsyncMock()


@pytest.fixture
def lockout():
    return InMemoryLockoutPolicy(max_failures=3, wait_seconds=60)


@pytest.fixture
def make_controller(notifier, lockout, realm):
    """Build a controller whose issuer draws the given values in order."""

    def _make(*values: int, lockout_policy=None):
        issuer = CodeIssuer(notifier, random_source=ScriptedRandomSource(*values))
        return ChallengeController(issuer=issuer, lockout=lockout_policy or lockout, realm=realm)

    return _make
