from fastapi import Depends, Header
from sqlmodel import Session

from herdbook.database import get_session
from herdbook.models.user import Role
from herdbook.services.sessions import Identity, require_role, resolve_identity


async def get_current_user(
    authorization: str | None = Header(default=None),
    session: Session = Depends(get_session),
) -> Identity:
    return resolve_identity(session, authorization)


async def get_admin_user(user: Identity = Depends(get_current_user)) -> Identity:
    return require_role(user, Role.ADMIN)
