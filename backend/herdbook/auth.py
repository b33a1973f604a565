import hashlib
import hmac
import secrets

import bcrypt

from herdbook.config import settings

# bcrypt only looks at the first 72 bytes of the secret.
_BCRYPT_MAX_BYTES = 72
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def _secret_bytes(secret: str) -> bytes:
    return secret.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(
        _secret_bytes(password), bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    ).decode()


def is_legacy_hash(hashed: str) -> bool:
    return not hashed.startswith(_BCRYPT_PREFIXES)


def _verify_legacy(plain: str, hashed: str) -> bool:
    """Check a ``salt:sha256hex(secret + salt)`` hash from older account rows."""
    salt, sep, digest = hashed.partition(":")
    if not sep or not salt or not digest:
        return False
    expected = hashlib.sha256((plain + salt).encode("utf-8")).hexdigest()
    return hmac.compare_digest(expected.encode(), digest.lower().encode())


def verify_password(plain: str, hashed: str) -> bool:
    if not plain or not hashed:
        return False
    if is_legacy_hash(hashed):
        return _verify_legacy(plain, hashed)
    try:
        return bcrypt.checkpw(_secret_bytes(plain), hashed.encode())
    except (ValueError, TypeError):
        return False


def generate_token() -> str:
    """256 bits of randomness, hex encoded."""
    return secrets.token_hex(32)
