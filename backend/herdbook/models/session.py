from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from herdbook.util.time import utcnow


class AuthSession(SQLModel, table=True):
    """One logged-in client. The token is the bearer credential."""

    __tablename__ = "sessions"

    id: int | None = Field(default=None, primary_key=True)
    token: str = Field(unique=True, index=True, max_length=128)
    user_id: int = Field(foreign_key="users.id", index=True)
    expires_at: datetime = Field(index=True, sa_type=DateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
