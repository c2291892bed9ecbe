"""Pydantic view of a directory user as seen by the email code step."""

from pydantic import BaseModel, ConfigDict


class UserRecord(BaseModel):
    """Already-identified user the attempt is authenticating."""

    id: int
    username: str
    email: str | None = None
    enabled: bool = True

    model_config = ConfigDict(from_attributes=True)

    @property
    def has_email(self) -> bool:
        return bool(self.email and self.email.strip())
