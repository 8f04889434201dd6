"""Request/response schemas for rooms."""

from pydantic import BaseModel, Field

from cacophony.schemas.post import PostWithReactions


class RoomCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(default="text", min_length=1, max_length=32)


class RoomUpdate(BaseModel):
    """Only the name of a room can change."""

    name: str | None = Field(default=None, min_length=1, max_length=255)


class RoomRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    name: str
    server_id: int
    type: str


class RoomMember(BaseModel):
    """Membership that reaches the room through an access grant on its role."""

    member_id: int
    user_id: int
    nickname: str
    role_id: int
    is_moderator: bool


class GrantedRole(BaseModel):
    role_id: int
    title: str
    is_admin: bool
    is_moderator: bool


class RoomDetail(RoomRead):
    members: list[RoomMember] = Field(default_factory=list)
    posts: list[PostWithReactions] = Field(default_factory=list)


class RoomRemoval(RoomRead):
    """A deleted room with the posts and reactions that went with it."""

    posts: list[PostWithReactions] = Field(default_factory=list)
