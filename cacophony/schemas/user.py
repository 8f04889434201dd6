"""Request/response schemas for users."""

from datetime import datetime

from pydantic import BaseModel, Field

from cacophony.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from cacophony.schemas.role import RoleRead
from cacophony.schemas.server import ServerRef


class UserCreate(BaseModel):
    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    picture_url: str | None = Field(default=None, max_length=2048)
    is_site_admin: bool = False


class UserUpdate(BaseModel):
    """Profile patch. is_site_admin is honoured only for site-admin callers."""

    username: str | None = Field(
        default=None, min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN
    )
    picture_url: str | None = Field(default=None, max_length=2048)
    is_site_admin: bool | None = None


class UserSummary(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    username: str
    picture_url: str | None = None
    last_seen: datetime | None = None


class UserRead(UserSummary):
    joining_date: datetime
    is_site_admin: bool


class UserMembership(BaseModel):
    id: int
    nickname: str
    joining_date: datetime
    server: ServerRef
    role: RoleRead


class UserDetail(UserRead):
    memberships: list[UserMembership] = Field(default_factory=list)
