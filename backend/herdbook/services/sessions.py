"""Session issue, validation, revocation and expiry.

Tokens are opaque random strings stored server-side. Every request
re-validates from the store; nothing is cached between requests.
"""

import logging
from datetime import datetime, timedelta

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from herdbook.auth import generate_token
from herdbook.config import settings
from herdbook.errors import Internal, PermissionDenied, Unauthenticated
from herdbook.models.session import AuthSession
from herdbook.models.user import Role, User
from herdbook.util.time import utcnow

logger = logging.getLogger(__name__)

MISSING_TOKEN = "missing token"
INVALID_TOKEN = "invalid token"


class Identity(BaseModel):
    """The account a validated bearer token resolves to."""

    id: int
    email: str
    full_name: str | None = None
    role: str


def extract_bearer_token(authorization: str | None) -> str | None:
    """Strip an optional ``Bearer`` prefix; a bare header value is the token."""
    if not authorization:
        return None
    value = authorization.strip()
    scheme, _, rest = value.partition(" ")
    if scheme.lower() == "bearer":
        value = rest.strip()
    return value or None


def issue_session(db: Session, user: User, now: datetime | None = None) -> AuthSession:
    """Create a session for ``user`` and stamp its last login.

    Both writes go out in one commit: if the session row cannot be
    stored, last-login is not touched either.
    """
    now = now or utcnow()
    user_id = user.id
    auth_session = AuthSession(
        token=generate_token(),
        user_id=user_id,
        expires_at=now + timedelta(hours=settings.session_ttl_hours),
        created_at=now,
    )
    user.last_login_at = now
    user.updated_at = now
    db.add(auth_session)
    db.add(user)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to create session for account {user_id}")
        raise Internal()
    db.refresh(auth_session)
    db.refresh(user)
    logger.info(f"Issued session for account {user.id}, expires {auth_session.expires_at}")
    return auth_session


def validate_token(db: Session, token: str | None, now: datetime | None = None) -> Identity:
    """Resolve a bearer token to an identity.

    Unknown, expired and owner-inactive tokens all fail with the same
    message; the reason only goes to the server log.
    """
    if not token:
        raise Unauthenticated(MISSING_TOKEN)

    row = db.exec(
        select(AuthSession, User)
        .join(User, AuthSession.user_id == User.id)
        .where(AuthSession.token == token)
    ).first()
    if row is None:
        logger.debug("Token rejected: unknown")
        raise Unauthenticated(INVALID_TOKEN)

    auth_session, user = row
    if (now or utcnow()) >= auth_session.expires_at:
        logger.debug(f"Token rejected: session {auth_session.id} expired")
        raise Unauthenticated(INVALID_TOKEN)
    if not user.is_active:
        logger.debug(f"Token rejected: account {user.id} inactive")
        raise Unauthenticated(INVALID_TOKEN)

    return Identity(id=user.id, email=user.email, full_name=user.full_name, role=user.role)


def resolve_identity(
    db: Session, authorization: str | None, now: datetime | None = None
) -> Identity:
    """Identity behind an ``Authorization`` header value, or ``Unauthenticated``."""
    return validate_token(db, extract_bearer_token(authorization), now=now)


def require_role(identity: Identity, role: Role | str) -> Identity:
    try:
        granted = Role(identity.role).grants(Role(role))
    except ValueError:
        granted = False
    if not granted:
        raise PermissionDenied("insufficient privileges")
    return identity


def require_admin(db: Session, authorization: str | None) -> Identity:
    return require_role(resolve_identity(db, authorization), Role.ADMIN)


def revoke_session(db: Session, token: str | None) -> bool:
    """Delete the session for ``token``. Returns whether a row was removed."""
    if not token:
        return False
    auth_session = db.exec(select(AuthSession).where(AuthSession.token == token)).first()
    if auth_session is None:
        return False
    db.delete(auth_session)
    db.commit()
    logger.info(f"Revoked session {auth_session.id} for account {auth_session.user_id}")
    return True


def purge_expired_sessions(db: Session, now: datetime | None = None) -> int:
    """Delete sessions past their expiry. Safe to run repeatedly."""
    cutoff = now or utcnow()
    expired = db.exec(select(AuthSession).where(AuthSession.expires_at <= cutoff)).all()
    for auth_session in expired:
        db.delete(auth_session)
    db.commit()
    if expired:
        logger.info(f"Purged {len(expired)} expired session(s), cutoff={cutoff.isoformat()}")
    return len(expired)
