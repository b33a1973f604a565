from herdbook.models.session import AuthSession
from herdbook.models.user import Role, User

__all__ = [
    "AuthSession",
    "Role",
    "User",
]
