"""Auth error taxonomy.

Each error is an ``HTTPException`` so it can be raised anywhere below a
route and reach the client with its status code unchanged.
"""

from fastapi import HTTPException


class AuthError(HTTPException):
    status_code = 500
    default_detail = "internal error"

    def __init__(self, detail: str | None = None, headers: dict[str, str] | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class InvalidArgument(AuthError):
    status_code = 400
    default_detail = "invalid argument"


class Unauthenticated(AuthError):
    status_code = 401
    default_detail = "invalid token"

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class PermissionDenied(AuthError):
    status_code = 403
    default_detail = "insufficient privileges"


class NotFound(AuthError):
    status_code = 404
    default_detail = "not found"


class AlreadyExists(AuthError):
    status_code = 409
    default_detail = "already exists"


class Internal(AuthError):
    status_code = 500
    default_detail = "internal error"
