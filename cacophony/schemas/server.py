"""Request/response schemas for servers."""

from datetime import datetime

from pydantic import BaseModel, Field

from cacophony.schemas.membership import MemberRead
from cacophony.schemas.role import RoleRead
from cacophony.schemas.room import RoomRead


class ServerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    picture_url: str | None = Field(default=None, max_length=2048)


class ServerUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    picture_url: str | None = Field(default=None, max_length=2048)


class ServerRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str
    picture_url: str | None = None
    start_date: datetime


class ServerSummary(BaseModel):
    id: int
    name: str
    picture_url: str | None = None
    number_of_members: int


class ServerRef(BaseModel):
    id: int
    name: str
    picture_url: str | None = None


class ServerDetail(ServerRead):
    rooms: list[RoomRead] = Field(default_factory=list)
    roles: list[RoleRead] = Field(default_factory=list)
    members: list[MemberRead] = Field(default_factory=list)
