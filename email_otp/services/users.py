"""User directory lookups for the already-identified user of an attempt."""

from typing import Dict, Iterable, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from email_otp.db.models.user import User
from email_otp.schemas.user import UserRecord


class UserDirectory(Protocol):
    async def get_by_id(self, user_id: int) -> Optional[UserRecord]: ...

    async def get_by_username(self, username: str) -> Optional[UserRecord]: ...


class SqlUserDirectory:
    """Reads users from the `users` table through an async session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        user = await self.session.get(User, user_id)
        return UserRecord.model_validate(user) if user else None

    async def get_by_username(self, username: str) -> Optional[UserRecord]:
        user = await self.session.scalar(select(User).where(User.username == username))
        return UserRecord.model_validate(user) if user else None


class InMemoryUserDirectory:
    """Fixed set of users, for tests and local runs without a database."""

    def __init__(self, users: Iterable[UserRecord] = ()):
        self._users: Dict[int, UserRecord] = {user.id: user for user in users}

    def add(self, user: UserRecord) -> None:
        self._users[user.id] = user

    async def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        return self._users.get(user_id)

    async def get_by_username(self, username: str) -> Optional[UserRecord]:
        return next((user for user in self._users.values() if user.username == username), None)
