from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from herdbook.util.time import utcnow


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    def grants(self, required: "Role") -> bool:
        """True if this role is at or above ``required``."""
        return self.rank >= Role(required).rank


# Higher ranks inherit every permission of the lower ones.
_ROLE_RANK = {Role.USER: 0, Role.ADMIN: 1}


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str
    full_name: str | None = Field(default=None)
    role: str = Field(default=Role.USER.value)  # "admin" | "user"
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    last_login_at: datetime | None = Field(default=None, sa_type=DateTime)
