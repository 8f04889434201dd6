"""Role store: server-scoped roles and their room-access grants."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from cacophony.core.database import atomic
from cacophony.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from cacophony.models import Access, Membership, Role, Room, Server
from cacophony.models.role import pack_color
from cacophony.schemas.role import (
    AccessGrantRead,
    Color,
    RoleAccess,
    RoleCreate,
    RoleDetail,
    RoleMember,
    RoleRead,
    RoleUpdate,
)
from cacophony.services.common import apply_values, patch_values, unique_or_conflict

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "title": "title",
    "color": "color",
    "is_admin": "is_admin",
}


def _color_to_storage(color: Color | dict) -> int:
    if isinstance(color, dict):
        color = Color.model_construct(**color)
    try:
        return pack_color(color.r, color.g, color.b)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def get_role_row(db: Session, role_id: int) -> Role:
    role = db.get(Role, role_id)
    if role is None:
        raise NotFoundError("role not found")
    return role


def ensure_role_on_server(db: Session, server_id: int, role_id: int) -> Role:
    """NotFoundError if the role does not exist, ForbiddenError if it lives elsewhere."""
    role = get_role_row(db, role_id)
    if role.server_id != server_id:
        raise ForbiddenError("role is not on server")
    return role


def create_role(db: Session, server_id: int, data: RoleCreate) -> RoleRead:
    """Create a role. An admin role starts with moderator access to every room of its server."""
    with atomic(db):
        if db.get(Server, server_id) is None:
            raise NotFoundError("server not found")
        role = Role(
            title=data.title,
            server_id=server_id,
            color=_color_to_storage(data.color),
            is_admin=data.is_admin,
        )
        db.add(role)
        db.flush()
        if role.is_admin:
            room_ids = db.scalars(select(Room.id).where(Room.server_id == server_id)).all()
            db.add_all(
                Access(role_id=role.id, room_id=room_id, is_moderator=True)
                for room_id in room_ids
            )
            db.flush()
        created = RoleRead.model_validate(role)
    logger.info(
        "Role created: id=%s server_id=%s is_admin=%s",
        created.id,
        server_id,
        created.is_admin,
    )
    return created


def list_roles(db: Session, server_id: int) -> list[RoleRead]:
    roles = db.query(Role).filter(Role.server_id == server_id).order_by(Role.id).all()
    return [RoleRead.model_validate(r) for r in roles]


def list_granted_rooms(db: Session, role_id: int) -> list[RoleAccess]:
    """Rooms the role has access to, with the moderator flag."""
    rows = db.execute(
        select(Room.id, Room.name, Room.type, Access.is_moderator)
        .join(Access, Access.room_id == Room.id)
        .where(Access.role_id == role_id)
        .order_by(Room.id)
    ).all()
    return [
        RoleAccess(room_id=room_id, name=name, type=room_type, is_moderator=is_moderator)
        for room_id, name, room_type, is_moderator in rows
    ]


def get_role(db: Session, role_id: int) -> RoleDetail:
    """Role with the memberships holding it and the rooms it can reach."""
    role = get_role_row(db, role_id)
    members = (
        db.query(Membership)
        .filter(Membership.role_id == role_id)
        .order_by(Membership.id)
        .all()
    )
    return RoleDetail(
        **RoleRead.model_validate(role).model_dump(),
        members=[
            RoleMember(id=m.id, nickname=m.nickname, picture_url=m.picture_url)
            for m in members
        ],
        access=list_granted_rooms(db, role_id),
    )


def update_role(db: Session, role_id: int, patch: RoleUpdate) -> RoleRead:
    with atomic(db):
        role = get_role_row(db, role_id)
        values = patch_values(patch, _UPDATABLE_COLUMNS)
        if "color" in values:
            values["color"] = _color_to_storage(values["color"])
        apply_values(role, values)
        db.flush()
        return RoleRead.model_validate(role)


def _get_grant(db: Session, role_id: int, room_id: int) -> Access:
    grant = db.get(Access, (role_id, room_id))
    if grant is None:
        raise NotFoundError("role doesn't have access to this room")
    return grant


def add_access(
    db: Session, role_id: int, room_id: int, is_moderator: bool = False
) -> AccessGrantRead:
    """
    Grant a role access to a room. Both must be on the same server
    (ForbiddenError otherwise); a second grant for the pair is a ConflictError.
    """
    with atomic(db):
        role = get_role_row(db, role_id)
        room = db.get(Room, room_id)
        if room is None:
            raise NotFoundError("room not found")
        if room.server_id != role.server_id:
            raise ForbiddenError("role and room are on different servers")
        if db.get(Access, (role_id, room_id)) is not None:
            raise ConflictError("role already has access to this room")
        grant = Access(role_id=role_id, room_id=room_id, is_moderator=is_moderator)
        with unique_or_conflict(db, "role already has access to this room"):
            db.add(grant)
        return AccessGrantRead.model_validate(grant)


def remove_access(db: Session, role_id: int, room_id: int) -> None:
    with atomic(db):
        deleted = (
            db.query(Access)
            .filter(Access.role_id == role_id, Access.room_id == room_id)
            .delete(synchronize_session=False)
        )
        if not deleted:
            raise NotFoundError("role doesn't have access to this room")


def change_moderator_status(
    db: Session, role_id: int, room_id: int, is_moderator: bool | None = None
) -> AccessGrantRead:
    """Set the moderator flag on an existing grant, or toggle it when None."""
    with atomic(db):
        grant = _get_grant(db, role_id, room_id)
        grant.is_moderator = (not grant.is_moderator) if is_moderator is None else is_moderator
        db.flush()
        return AccessGrantRead.model_validate(grant)


def remove_role(db: Session, role_id: int) -> RoleRead:
    """
    Delete a role and its grants. Refused with ConflictError while any
    membership still holds it; members are never silently re-roled.
    """
    with atomic(db):
        role = get_role_row(db, role_id)
        in_use = db.query(Membership.id).filter(Membership.role_id == role_id).first()
        if in_use is not None:
            logger.warning("Refused to remove role id=%s: members still hold it", role_id)
            raise ConflictError("Members still belong to this role")
        removed = RoleRead.model_validate(role)
        db.query(Access).filter(Access.role_id == role_id).delete(synchronize_session=False)
        db.query(Role).filter(Role.id == role_id).delete(synchronize_session=False)
    logger.info("Role removed: id=%s server_id=%s", role_id, removed.server_id)
    return removed
