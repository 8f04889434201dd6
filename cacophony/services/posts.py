"""Post/reaction store: messages authored by memberships, and reactions to them."""

import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from cacophony.core.database import atomic
from cacophony.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from cacophony.models import Access, Membership, Post, Reaction, Room
from cacophony.schemas.post import (
    PostCreate,
    PostDetail,
    PostRead,
    PostWithReactions,
    Poster,
    ReactionMap,
    ReactionRead,
)
from cacophony.services.common import unique_or_conflict

logger = logging.getLogger(__name__)


def group_reactions(reactions: Iterable[Reaction]) -> dict[int, ReactionMap]:
    """post_id -> {type: [member_id, ...]}, member ids appended in the given order."""
    grouped: dict[int, ReactionMap] = {}
    for reaction in reactions:
        by_type = grouped.setdefault(reaction.post_id, {})
        by_type.setdefault(reaction.type, []).append(reaction.member_id)
    return grouped


def reactions_for_posts(db: Session, post_ids: list[int]) -> dict[int, ReactionMap]:
    if not post_ids:
        return {}
    reactions = (
        db.query(Reaction)
        .filter(Reaction.post_id.in_(post_ids))
        .order_by(Reaction.id)
        .all()
    )
    return group_reactions(reactions)


def get_post_row(db: Session, post_id: int) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        raise NotFoundError("post not found")
    return post


def ensure_post_in_room(db: Session, room_id: int, post_id: int) -> Post:
    post = get_post_row(db, post_id)
    if post.room_id != room_id:
        raise ForbiddenError("post is not in room")
    return post


def _require_room_access(db: Session, membership: Membership, room: Room) -> None:
    """
    ForbiddenError when the membership is on another server, UnauthorizedError
    when its role holds no access grant on the room. Admin roles receive their
    grants when rooms and roles are created, so they go through the same check.
    """
    if membership.server_id != room.server_id:
        raise ForbiddenError("membership is not on the room's server")
    if db.get(Access, (membership.role_id, room.id)) is None:
        raise UnauthorizedError("role has no access to this room")


def create_post(db: Session, member_id: int, room_id: int, data: PostCreate) -> PostRead:
    """
    Author a post as a membership. The membership must be on the room's
    server and its role must have access to the room.
    """
    if not data.content or not data.content.strip():
        raise ValidationError("post content must not be empty")
    with atomic(db):
        membership = db.get(Membership, member_id)
        if membership is None:
            raise NotFoundError("membership not found")
        room = db.get(Room, room_id)
        if room is None:
            raise NotFoundError("room not found")
        _require_room_access(db, membership, room)
        if data.threaded_from is not None:
            ensure_post_in_room(db, room_id, data.threaded_from)
        post = Post(
            member_id=member_id,
            room_id=room_id,
            content=data.content,
            threaded_from=data.threaded_from,
        )
        db.add(post)
        db.flush()
        return PostRead.model_validate(post)


def find_posts(db: Session, room_id: int) -> list[PostDetail]:
    """Posts of a room in order, each with its poster and grouped reactions."""
    if db.get(Room, room_id) is None:
        raise NotFoundError("room not found")
    rows = (
        db.query(Post, Membership)
        .outerjoin(Membership, Membership.id == Post.member_id)
        .filter(Post.room_id == room_id)
        .order_by(Post.id)
        .all()
    )
    reactions = reactions_for_posts(db, [post.id for post, _ in rows])
    return [
        PostDetail(
            **PostRead.model_validate(post).model_dump(),
            reactions=reactions.get(post.id, {}),
            poster=(
                Poster(id=poster.id, nickname=poster.nickname, picture_url=poster.picture_url)
                if poster is not None
                else None
            ),
        )
        for post, poster in rows
    ]


def get_post(db: Session, post_id: int) -> PostDetail:
    post = get_post_row(db, post_id)
    poster = db.get(Membership, post.member_id) if post.member_id is not None else None
    return PostDetail(
        **PostRead.model_validate(post).model_dump(),
        reactions=reactions_for_posts(db, [post.id]).get(post.id, {}),
        poster=(
            Poster(id=poster.id, nickname=poster.nickname, picture_url=poster.picture_url)
            if poster is not None
            else None
        ),
    )


def delete_post(db: Session, post_id: int) -> PostWithReactions:
    """Delete a post and its reactions; both are returned for a retraction broadcast."""
    with atomic(db):
        post = get_post_row(db, post_id)
        removed = PostWithReactions(
            **PostRead.model_validate(post).model_dump(),
            reactions=reactions_for_posts(db, [post_id]).get(post_id, {}),
        )
        db.query(Reaction).filter(Reaction.post_id == post_id).delete(
            synchronize_session=False
        )
        db.query(Post).filter(Post.id == post_id).delete(synchronize_session=False)
    logger.info("Post deleted: id=%s room_id=%s", post_id, removed.room_id)
    return removed


def add_reaction(db: Session, member_id: int, post_id: int, type: str) -> ReactionRead:
    """
    React to a post. The same room access as posting is required; one
    reaction per (member, post, type), a repeat is a ConflictError.
    """
    with atomic(db):
        membership = db.get(Membership, member_id)
        if membership is None:
            raise NotFoundError("membership not found")
        post = get_post_row(db, post_id)
        _require_room_access(db, membership, db.get(Room, post.room_id))
        existing = (
            db.query(Reaction.id)
            .filter(
                Reaction.member_id == member_id,
                Reaction.post_id == post_id,
                Reaction.type == type,
            )
            .first()
        )
        if existing is not None:
            raise ConflictError("reaction already exists")
        reaction = Reaction(member_id=member_id, post_id=post_id, type=type)
        with unique_or_conflict(db, "reaction already exists"):
            db.add(reaction)
        return ReactionRead.model_validate(reaction)


def list_reactions(db: Session, post_id: int) -> list[ReactionRead]:
    get_post_row(db, post_id)
    reactions = (
        db.query(Reaction).filter(Reaction.post_id == post_id).order_by(Reaction.id).all()
    )
    return [ReactionRead.model_validate(r) for r in reactions]


def remove_reaction(db: Session, member_id: int, post_id: int, type: str) -> ReactionRead:
    with atomic(db):
        reaction = (
            db.query(Reaction)
            .filter(
                Reaction.member_id == member_id,
                Reaction.post_id == post_id,
                Reaction.type == type,
            )
            .first()
        )
        if reaction is None:
            raise NotFoundError("reaction not found")
        removed = ReactionRead.model_validate(reaction)
        db.delete(reaction)
    return removed
