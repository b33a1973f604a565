"""Account store: lookup, registration, credential checks and admin edits."""

import logging
from functools import lru_cache

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from herdbook.auth import generate_token, hash_password, is_legacy_hash, verify_password
from herdbook.config import settings
from herdbook.errors import AlreadyExists, InvalidArgument, NotFound, Unauthenticated
from herdbook.models.session import AuthSession
from herdbook.models.user import Role, User
from herdbook.util.time import utcnow

logger = logging.getLogger(__name__)

EMAIL_MAX_LEN = 255
INVALID_CREDENTIALS = "invalid credentials"


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_email(email: str | None) -> str:
    """Return the normalized email or raise ``InvalidArgument``."""
    normalized = normalize_email(email)
    if not normalized:
        raise InvalidArgument("email is required")
    local, sep, domain = normalized.partition("@")
    if (
        not sep
        or not local
        or not domain
        or "@" in domain
        or any(c.isspace() for c in normalized)
        or len(normalized) > EMAIL_MAX_LEN
    ):
        raise InvalidArgument("invalid email address")
    return normalized


def validate_password(password: str | None) -> str:
    if not password:
        raise InvalidArgument("password is required")
    if len(password) < settings.password_min_length:
        raise InvalidArgument(
            f"password must be at least {settings.password_min_length} characters"
        )
    if len(password) > settings.password_max_length:
        raise InvalidArgument(
            f"password must be at most {settings.password_max_length} characters"
        )
    return password


def validate_role(role: str | None) -> Role:
    try:
        return Role(role or Role.USER.value)
    except ValueError:
        allowed = ", ".join(r.value for r in Role)
        raise InvalidArgument(f"role must be one of: {allowed}")


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password(generate_token())


def get_user_by_email(db: Session, email: str) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.exec(select(User).where(User.email == normalized)).first()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def list_users(db: Session, limit: int = 50, offset: int = 0) -> tuple[list[User], int]:
    total = db.exec(select(func.count()).select_from(User)).one()
    users = db.exec(
        select(User).order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit)
    ).all()
    return list(users), total


def create_user(
    db: Session,
    *,
    email: str | None,
    password: str | None,
    full_name: str | None = None,
    role: str | None = None,
) -> User:
    """Validate, hash and insert a new account.

    The unique index on ``users.email`` decides between two concurrent
    inserts of the same address; the loser gets ``AlreadyExists``.
    """
    normalized = validate_email(email)
    validate_password(password)
    account_role = validate_role(role)

    if get_user_by_email(db, normalized):
        raise AlreadyExists("user with this email already exists")

    user = User(
        email=normalized,
        password_hash=hash_password(password),
        full_name=(full_name or "").strip() or None,
        role=account_role.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyExists("user with this email already exists")
    db.refresh(user)
    logger.info(f"Created account {user.id} with role {user.role}")
    return user


def authenticate(db: Session, email: str | None, password: str | None) -> User:
    """Check credentials and return the account.

    Unknown, inactive and wrong-password all fail with the same message.
    """
    if not normalize_email(email) or not password:
        raise InvalidArgument("email and password are required")

    user = get_user_by_email(db, email)
    if user is None or not user.is_active:
        # Burn a bcrypt round so response time does not reveal the miss.
        verify_password(password, _dummy_hash())
        logger.info("Login rejected: unknown or inactive account")
        raise Unauthenticated(INVALID_CREDENTIALS)

    if not verify_password(password, user.password_hash):
        logger.info(f"Login rejected: bad password for account {user.id}")
        raise Unauthenticated(INVALID_CREDENTIALS)

    if is_legacy_hash(user.password_hash):
        # Flushed with the caller's next commit (the new session row).
        user.password_hash = hash_password(password)
        user.updated_at = utcnow()
        db.add(user)
        logger.info(f"Upgraded legacy password hash for account {user.id}")
    return user


def update_user(
    db: Session,
    user_id: int,
    *,
    email: str | None = None,
    full_name: str | None = None,
    role: str | None = None,
    is_active: bool | None = None,
    password: str | None = None,
) -> User:
    user = get_user(db, user_id)

    changes: dict = {}
    if email is not None:
        changes["email"] = validate_email(email)
    if full_name is not None:
        changes["full_name"] = full_name.strip() or None
    if role is not None:
        changes["role"] = validate_role(role).value
    if is_active is not None:
        changes["is_active"] = is_active
    if password is not None:
        changes["password_hash"] = hash_password(validate_password(password))
    if not changes:
        raise InvalidArgument("No fields to update")

    if "email" in changes and changes["email"] != user.email:
        if get_user_by_email(db, changes["email"]):
            raise AlreadyExists("user with this email already exists")

    for key, value in changes.items():
        setattr(user, key, value)
    user.updated_at = utcnow()
    db.add(user)

    if "password_hash" in changes:
        # A reset password must not leave old logins alive.
        for s in db.exec(select(AuthSession).where(AuthSession.user_id == user.id)).all():
            db.delete(s)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyExists("user with this email already exists")
    db.refresh(user)
    logger.info(f"Updated account {user.id}: {', '.join(sorted(changes))}")
    return user


def delete_user(db: Session, user_id: int, acting_user_id: int) -> None:
    if user_id == acting_user_id:
        raise InvalidArgument("Cannot delete your own account")
    user = get_user(db, user_id)

    for s in db.exec(select(AuthSession).where(AuthSession.user_id == user.id)).all():
        db.delete(s)
    db.delete(user)
    db.commit()
    logger.info(f"Deleted account {user_id} (by {acting_user_id})")


def bootstrap_admin_if_needed(db: Session) -> User | None:
    """Create the first admin when the account table is empty.

    Driven by ``HERDBOOK_BOOTSTRAP_ADMIN_EMAIL`` / ``HERDBOOK_BOOTSTRAP_ADMIN_PASSWORD``;
    nothing is created while the password is unset.
    """
    if db.exec(select(User)).first() is not None:
        return None
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        return None
    return create_user(
        db,
        email=settings.bootstrap_admin_email,
        password=settings.bootstrap_admin_password,
        full_name="Administrator",
        role=Role.ADMIN.value,
    )
