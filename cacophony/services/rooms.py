"""Room store: named rooms inside a server, with their posts and access grants."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from cacophony.core.database import atomic
from cacophony.core.errors import ForbiddenError, NotFoundError
from cacophony.models import Access, Membership, Post, Reaction, Role, Room, Server
from cacophony.schemas.post import PostRead, PostWithReactions
from cacophony.schemas.room import (
    GrantedRole,
    RoomCreate,
    RoomDetail,
    RoomMember,
    RoomRead,
    RoomRemoval,
    RoomUpdate,
)
from cacophony.services.common import apply_values, patch_values, unique_or_conflict
from cacophony.services.posts import reactions_for_posts

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {"name": "name"}


def _name_taken(name: str | None) -> str:
    return f"room {name!r} already exists on this server"


def get_room_row(db: Session, room_id: int) -> Room:
    room = db.get(Room, room_id)
    if room is None:
        raise NotFoundError("room not found")
    return room


def ensure_room_on_server(db: Session, server_id: int, room_id: int) -> Room:
    """NotFoundError if the room does not exist, ForbiddenError if it lives elsewhere."""
    room = get_room_row(db, room_id)
    if room.server_id != server_id:
        raise ForbiddenError("room is not on server")
    return room


def create_room(db: Session, server_id: int, data: RoomCreate) -> RoomRead:
    """Create a room; every admin role of the server gets moderator access to it."""
    with atomic(db):
        if db.get(Server, server_id) is None:
            raise NotFoundError("server not found")
        room = Room(name=data.name, server_id=server_id, type=data.type)
        with unique_or_conflict(db, _name_taken(data.name)):
            db.add(room)
        admin_role_ids = db.scalars(
            select(Role.id).where(Role.server_id == server_id, Role.is_admin.is_(True))
        ).all()
        db.add_all(
            Access(role_id=role_id, room_id=room.id, is_moderator=True)
            for role_id in admin_role_ids
        )
        db.flush()
        created = RoomRead.model_validate(room)
    logger.info(
        "Room created: id=%s server_id=%s admin_grants=%s",
        created.id,
        server_id,
        len(admin_role_ids),
    )
    return created


def list_rooms(db: Session, server_id: int) -> list[RoomRead]:
    rooms = db.query(Room).filter(Room.server_id == server_id).order_by(Room.id).all()
    return [RoomRead.model_validate(r) for r in rooms]


def _posts_with_reactions(db: Session, room_id: int) -> list[PostWithReactions]:
    posts = db.query(Post).filter(Post.room_id == room_id).order_by(Post.id).all()
    reactions = reactions_for_posts(db, [p.id for p in posts])
    return [
        PostWithReactions(
            **PostRead.model_validate(p).model_dump(),
            reactions=reactions.get(p.id, {}),
        )
        for p in posts
    ]


def get_room(db: Session, room_id: int) -> RoomDetail:
    """
    Room with the memberships reaching it through an access grant on their
    role, and its posts with grouped reactions.
    """
    room = get_room_row(db, room_id)
    rows = db.execute(
        select(Membership, Access.is_moderator)
        .join(Access, Access.role_id == Membership.role_id)
        .where(Access.room_id == room_id)
        .order_by(Membership.id)
    ).all()
    members = [
        RoomMember(
            member_id=m.id,
            user_id=m.user_id,
            nickname=m.nickname,
            role_id=m.role_id,
            is_moderator=is_moderator,
        )
        for m, is_moderator in rows
    ]
    return RoomDetail(
        **RoomRead.model_validate(room).model_dump(),
        members=members,
        posts=_posts_with_reactions(db, room_id),
    )


def list_granted_roles(db: Session, room_id: int) -> list[GrantedRole]:
    """Roles with an access grant on the room."""
    get_room_row(db, room_id)
    rows = db.execute(
        select(Role.id, Role.title, Role.is_admin, Access.is_moderator)
        .join(Access, Access.role_id == Role.id)
        .where(Access.room_id == room_id)
        .order_by(Role.id)
    ).all()
    return [
        GrantedRole(role_id=role_id, title=title, is_admin=is_admin, is_moderator=is_moderator)
        for role_id, title, is_admin, is_moderator in rows
    ]


def update_room(db: Session, room_id: int, patch: RoomUpdate) -> RoomRead:
    with atomic(db):
        room = get_room_row(db, room_id)
        values = patch_values(patch, _UPDATABLE_COLUMNS)
        with unique_or_conflict(db, _name_taken(values.get("name"))):
            apply_values(room, values)
        return RoomRead.model_validate(room)


def remove_room(db: Session, room_id: int) -> RoomRemoval:
    """
    Delete a room with its posts, their reactions and the access grants on it.
    The removed posts are returned so callers can broadcast the retraction.
    """
    with atomic(db):
        room = get_room_row(db, room_id)
        removed = RoomRemoval(
            **RoomRead.model_validate(room).model_dump(),
            posts=_posts_with_reactions(db, room_id),
        )
        post_ids = select(Post.id).where(Post.room_id == room_id)
        db.query(Reaction).filter(Reaction.post_id.in_(post_ids)).delete(
            synchronize_session=False
        )
        # replies are removed with the room, so the self-reference goes first
        db.query(Post).filter(Post.room_id == room_id).update(
            {Post.threaded_from: None}, synchronize_session=False
        )
        db.query(Post).filter(Post.room_id == room_id).delete(synchronize_session=False)
        db.query(Access).filter(Access.room_id == room_id).delete(synchronize_session=False)
        db.query(Room).filter(Room.id == room_id).delete(synchronize_session=False)
    logger.info(
        "Room removed: id=%s server_id=%s posts=%s",
        room_id,
        removed.server_id,
        len(removed.posts),
    )
    return removed
