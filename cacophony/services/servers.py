"""
Tenant store: servers, the bootstrap that makes a new server usable, and the
cascade that removes one with everything scoped to it.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cacophony.core.config import settings
from cacophony.core.database import atomic
from cacophony.core.errors import NotFoundError
from cacophony.models import Access, Membership, Post, Reaction, Role, Room, Server
from cacophony.schemas.membership import MemberRead, MembershipCreate, MembershipRead
from cacophony.schemas.role import RoleCreate, RoleRead
from cacophony.schemas.room import RoomCreate
from cacophony.schemas.server import (
    ServerCreate,
    ServerDetail,
    ServerRead,
    ServerSummary,
    ServerUpdate,
)
from cacophony.services.common import apply_values, patch_values, unique_or_conflict
from cacophony.services.memberships import create_membership
from cacophony.services.roles import create_role, list_roles
from cacophony.services.rooms import create_room, list_rooms

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "name": "name",
    "picture_url": "picture_url",
}
_NULLABLE_FIELDS = ("picture_url",)


def _name_taken(name: str | None) -> str:
    return f"server name {name!r} is already taken"


def get_server_row(db: Session, server_id: int) -> Server:
    server = db.get(Server, server_id)
    if server is None:
        raise NotFoundError("server not found")
    return server


def create_server(db: Session, data: ServerCreate, founder_user_id: int) -> ServerDetail:
    """
    Create a server and bootstrap it for its founder, all in one transaction:

    1. the server row
    2. an admin role and a member role
    3. the founder's membership under the admin role
    4. the default room
    5. moderator access to that room for the admin role, granted by create_room

    Any failure rolls every step back, so a server never exists without an
    admin membership and a room.
    """
    with atomic(db):
        server = Server(name=data.name, picture_url=data.picture_url)
        with unique_or_conflict(db, _name_taken(data.name)):
            db.add(server)
        admin_role = create_role(
            db, server.id, RoleCreate(title=settings.ADMIN_ROLE_TITLE, is_admin=True)
        )
        create_role(db, server.id, RoleCreate(title=settings.MEMBER_ROLE_TITLE))
        create_membership(
            db,
            server.id,
            MembershipCreate(user_id=founder_user_id, role_id=admin_role.id),
        )
        room = create_room(db, server.id, RoomCreate(name=settings.DEFAULT_ROOM_NAME))
        created = get_server(db, server.id)
    logger.info(
        "Server created: id=%s founder_user_id=%s admin_role_id=%s room_id=%s",
        created.id,
        founder_user_id,
        admin_role.id,
        room.id,
    )
    return created


def _summaries(db: Session, *filters) -> list[ServerSummary]:
    rows = db.execute(
        select(
            Server.id,
            Server.name,
            Server.picture_url,
            func.count(Membership.id).label("number_of_members"),
        )
        .outerjoin(Membership, Membership.server_id == Server.id)
        .where(*filters)
        .group_by(Server.id, Server.name, Server.picture_url)
        .order_by(Server.id)
    ).all()
    return [
        ServerSummary(
            id=row.id,
            name=row.name,
            picture_url=row.picture_url,
            number_of_members=row.number_of_members,
        )
        for row in rows
    ]


def list_servers(db: Session) -> list[ServerSummary]:
    """Every server with its member count."""
    return _summaries(db)


def find_servers_by_name(db: Session, name: str) -> list[ServerSummary]:
    servers = _summaries(db, Server.name == name)
    if not servers:
        raise NotFoundError("no servers with that name")
    return servers


def get_server(db: Session, server_id: int) -> ServerDetail:
    """Server with its rooms, roles and members."""
    server = get_server_row(db, server_id)
    rows = db.execute(
        select(Membership, Role)
        .join(Role, Role.id == Membership.role_id)
        .where(Membership.server_id == server_id)
        .order_by(Membership.id)
    ).all()
    return ServerDetail(
        **ServerRead.model_validate(server).model_dump(),
        rooms=list_rooms(db, server_id),
        roles=list_roles(db, server_id),
        members=[
            MemberRead(
                **MembershipRead.model_validate(membership).model_dump(),
                role=RoleRead.model_validate(role),
            )
            for membership, role in rows
        ],
    )


def update_server(db: Session, server_id: int, patch: ServerUpdate) -> ServerRead:
    with atomic(db):
        server = get_server_row(db, server_id)
        values = patch_values(patch, _UPDATABLE_COLUMNS, nullable=_NULLABLE_FIELDS)
        with unique_or_conflict(db, _name_taken(values.get("name"))):
            apply_values(server, values)
        return ServerRead.model_validate(server)


def remove_server(db: Session, server_id: int) -> ServerRead:
    """
    Delete a server and everything scoped to it, in one transaction:
    reactions, posts, access grants, memberships, roles, rooms, then the
    server row. A failing step rolls the whole cascade back.
    """
    with atomic(db):
        server = get_server_row(db, server_id)
        removed = ServerRead.model_validate(server)

        room_ids = select(Room.id).where(Room.server_id == server_id)
        role_ids = select(Role.id).where(Role.server_id == server_id)
        member_ids = select(Membership.id).where(Membership.server_id == server_id)
        post_ids = select(Post.id).where(Post.room_id.in_(room_ids))

        counts = {}
        counts["reactions"] = (
            db.query(Reaction)
            .filter(Reaction.post_id.in_(post_ids))
            .delete(synchronize_session=False)
        )
        db.query(Post).filter(Post.room_id.in_(room_ids)).update(
            {Post.threaded_from: None}, synchronize_session=False
        )
        counts["posts"] = (
            db.query(Post)
            .filter(Post.room_id.in_(room_ids))
            .delete(synchronize_session=False)
        )
        counts["access"] = (
            db.query(Access)
            .filter(Access.role_id.in_(role_ids) | Access.room_id.in_(room_ids))
            .delete(synchronize_session=False)
        )
        # attribution left anywhere else by this server's members is cleared
        db.query(Reaction).filter(Reaction.member_id.in_(member_ids)).update(
            {Reaction.member_id: None}, synchronize_session=False
        )
        db.query(Post).filter(Post.member_id.in_(member_ids)).update(
            {Post.member_id: None}, synchronize_session=False
        )
        counts["memberships"] = (
            db.query(Membership)
            .filter(Membership.server_id == server_id)
            .delete(synchronize_session=False)
        )
        counts["roles"] = (
            db.query(Role).filter(Role.server_id == server_id).delete(synchronize_session=False)
        )
        counts["rooms"] = (
            db.query(Room).filter(Room.server_id == server_id).delete(synchronize_session=False)
        )
        db.query(Server).filter(Server.id == server_id).delete(synchronize_session=False)
    logger.info("Server removed: id=%s %s", server_id, counts)
    return removed
