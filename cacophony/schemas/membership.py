"""Request/response schemas for memberships."""

from datetime import datetime

from pydantic import BaseModel, Field

from cacophony.schemas.role import RoleAccess, RoleRead


class MembershipCreate(BaseModel):
    """nickname and picture_url default to the user's username and picture."""

    user_id: int
    role_id: int
    nickname: str | None = Field(default=None, min_length=1, max_length=255)
    picture_url: str | None = Field(default=None, max_length=2048)


class MembershipUpdate(BaseModel):
    nickname: str | None = Field(default=None, min_length=1, max_length=255)
    role_id: int | None = None
    picture_url: str | None = Field(default=None, max_length=2048)


class MembershipRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    user_id: int
    server_id: int
    role_id: int
    nickname: str
    picture_url: str | None = None
    joining_date: datetime


class MemberRead(MembershipRead):
    """Membership with its role expanded."""

    role: RoleRead


class MembershipDetail(MemberRead):
    access: list[RoleAccess] = Field(default_factory=list)
