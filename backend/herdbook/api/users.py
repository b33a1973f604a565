from datetime import datetime

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, field_validator
from sqlmodel import Session

from herdbook.api.deps import get_admin_user
from herdbook.database import get_session
from herdbook.services import accounts
from herdbook.services.sessions import Identity
from herdbook.util.time import as_utc

router = APIRouter(prefix="/auth/users", tags=["users"])


class CreateUserRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    full_name: str | None = None
    role: str | None = None


class UpdateUserRequest(BaseModel):
    email: str | None = None
    full_name: str | None = None
    role: str | None = None
    is_active: bool | None = None
    password: str | None = None


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str | None
    role: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    last_login_at: datetime | None

    @field_validator("created_at", "updated_at", "last_login_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None


class UserListResponse(BaseModel):
    users: list[UserResponse]
    total: int


@router.get("", response_model=UserListResponse)
async def list_users(
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    session: Session = Depends(get_session),
    _admin: Identity = Depends(get_admin_user),
):
    users, total = accounts.list_users(session, limit=limit, offset=offset)
    return {"users": users, "total": total}


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    body: CreateUserRequest,
    session: Session = Depends(get_session),
    _admin: Identity = Depends(get_admin_user),
):
    return await run_in_threadpool(
        accounts.create_user,
        session,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        role=body.role,
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    session: Session = Depends(get_session),
    _admin: Identity = Depends(get_admin_user),
):
    return accounts.get_user(session, user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    body: UpdateUserRequest,
    session: Session = Depends(get_session),
    _admin: Identity = Depends(get_admin_user),
):
    update_data = body.model_dump(exclude_unset=True, exclude_none=True)
    return await run_in_threadpool(accounts.update_user, session, user_id, **update_data)


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    session: Session = Depends(get_session),
    admin: Identity = Depends(get_admin_user),
):
    accounts.delete_user(session, user_id, acting_user_id=admin.id)
    return {"success": True}
