import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Header
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from sqlmodel import Session

from herdbook.api.deps import get_current_user
from herdbook.database import get_session
from herdbook.services.accounts import authenticate, create_user
from herdbook.services.sessions import (
    Identity,
    extract_bearer_token,
    issue_session,
    revoke_session,
)
from herdbook.util.time import as_utc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    full_name: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class AccountResponse(BaseModel):
    id: int
    email: str
    full_name: str | None
    role: str


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    account: AccountResponse


@router.post("/register", response_model=AccountResponse)
async def register(body: RegisterRequest, session: Session = Depends(get_session)):
    # bcrypt is CPU bound; keep it off the event loop.
    user = await run_in_threadpool(
        create_user,
        session,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
    )
    return user


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, session: Session = Depends(get_session)):
    user = await run_in_threadpool(authenticate, session, body.email, body.password)
    auth_session = issue_session(session, user)
    logger.info(f"Account {user.id} logged in")
    return LoginResponse(
        token=auth_session.token,
        expires_at=as_utc(auth_session.expires_at),
        account=AccountResponse.model_validate(user, from_attributes=True),
    )


@router.post("/logout")
async def logout(
    authorization: str | None = Header(default=None),
    session: Session = Depends(get_session),
):
    revoke_session(session, extract_bearer_token(authorization))
    return {"success": True}


@router.get("/me", response_model=AccountResponse)
async def me(user: Identity = Depends(get_current_user)):
    return user
