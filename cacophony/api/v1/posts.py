"""Posts in a room and reactions to them."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cacophony.api.v1.auth import get_snapshot
from cacophony.api.v1.scope import post_in_room, room_in_server
from cacophony.core.database import get_db
from cacophony.models import Post, Room
from cacophony.schemas.credentials import CredentialSnapshot
from cacophony.schemas.post import (
    PostCreate,
    PostDetail,
    PostRead,
    PostWithReactions,
    ReactionCreate,
    ReactionRead,
)
from cacophony.services import posts as post_store
from cacophony.services.authorization import (
    author_claim,
    require_admin_or_self,
    require_member,
)

router = APIRouter()

_POSTS = "/{server_id}/rooms/{room_id}/posts"


@router.post(_POSTS, response_model=PostRead, status_code=status.HTTP_201_CREATED)
def create_post(
    body: PostCreate,
    room: Annotated[Room, Depends(room_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> PostRead:
    """Post as the caller's membership on this server. Site admins must be members too."""
    claim = author_claim(snapshot, room.server_id)
    return post_store.create_post(db, claim.membership_id, room.id, body)


@router.get(_POSTS, response_model=list[PostDetail])
def list_posts(
    room: Annotated[Room, Depends(room_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> list[PostDetail]:
    require_member(snapshot, room.server_id)
    return post_store.find_posts(db, room.id)


@router.get(_POSTS + "/{post_id}", response_model=PostDetail)
def get_post(
    room: Annotated[Room, Depends(room_in_server)],
    post: Annotated[Post, Depends(post_in_room)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> PostDetail:
    require_member(snapshot, room.server_id)
    return post_store.get_post(db, post.id)


@router.delete(_POSTS + "/{post_id}", response_model=PostWithReactions)
def delete_post(
    room: Annotated[Room, Depends(room_in_server)],
    post: Annotated[Post, Depends(post_in_room)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> PostWithReactions:
    """The author or a server admin may delete a post."""
    require_admin_or_self(snapshot, room.server_id, post.member_id)
    return post_store.delete_post(db, post.id)


@router.post(
    _POSTS + "/{post_id}/reactions",
    response_model=ReactionRead,
    status_code=status.HTTP_201_CREATED,
)
def add_reaction(
    body: ReactionCreate,
    room: Annotated[Room, Depends(room_in_server)],
    post: Annotated[Post, Depends(post_in_room)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> ReactionRead:
    claim = author_claim(snapshot, room.server_id)
    return post_store.add_reaction(db, claim.membership_id, post.id, body.type)


@router.get(_POSTS + "/{post_id}/reactions", response_model=list[ReactionRead])
def list_reactions(
    room: Annotated[Room, Depends(room_in_server)],
    post: Annotated[Post, Depends(post_in_room)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> list[ReactionRead]:
    require_member(snapshot, room.server_id)
    return post_store.list_reactions(db, post.id)


@router.delete(_POSTS + "/{post_id}/reactions/{reaction_type}", response_model=ReactionRead)
def remove_reaction(
    reaction_type: str,
    room: Annotated[Room, Depends(room_in_server)],
    post: Annotated[Post, Depends(post_in_room)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> ReactionRead:
    """Withdraw the caller's own reaction of this type."""
    claim = author_claim(snapshot, room.server_id)
    return post_store.remove_reaction(db, claim.membership_id, post.id, reaction_type)
