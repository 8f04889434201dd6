"""Request/response schemas for posts and reactions."""

from datetime import datetime

from pydantic import BaseModel, Field

# reaction type -> ids of reacting members, oldest first (None once a member is gone)
ReactionMap = dict[str, list[int | None]]


class PostCreate(BaseModel):
    content: str = Field(..., max_length=10_000)
    threaded_from: int | None = None


class PostRead(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    member_id: int | None
    room_id: int
    content: str
    post_date: datetime
    threaded_from: int | None = None


class Poster(BaseModel):
    id: int
    nickname: str
    picture_url: str | None = None


class PostWithReactions(PostRead):
    reactions: ReactionMap = Field(default_factory=dict)


class PostDetail(PostWithReactions):
    poster: Poster | None = None


class ReactionCreate(BaseModel):
    type: str = Field(..., min_length=1, max_length=64)


class ReactionRead(BaseModel):
    model_config = {"from_attributes": True}

    member_id: int | None
    post_id: int
    type: str
