"""Membership store: users joined to servers under a role, with nicknames."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from cacophony.core.database import atomic
from cacophony.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from cacophony.models import Membership, Post, Reaction, Role, User
from cacophony.schemas.membership import (
    MemberRead,
    MembershipCreate,
    MembershipDetail,
    MembershipRead,
    MembershipUpdate,
)
from cacophony.schemas.role import RoleRead
from cacophony.services.common import apply_values, patch_values, unique_or_conflict
from cacophony.services.roles import get_role_row, list_granted_rooms

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "nickname": "nickname",
    "role_id": "role_id",
    "picture_url": "picture_url",
}
_NULLABLE_FIELDS = ("picture_url",)


def _member_read(membership: Membership, role: Role) -> MemberRead:
    return MemberRead(
        **MembershipRead.model_validate(membership).model_dump(),
        role=RoleRead.model_validate(role),
    )


def _nickname_taken(nickname: str | None) -> str:
    return f"nickname {nickname!r} is already used on this server"


def get_membership_row(db: Session, membership_id: int) -> Membership:
    membership = db.get(Membership, membership_id)
    if membership is None:
        raise NotFoundError("membership not found")
    return membership


def ensure_membership_on_server(
    db: Session, server_id: int, membership_id: int
) -> Membership:
    """NotFoundError if absent, ForbiddenError if it belongs to another server."""
    membership = get_membership_row(db, membership_id)
    if membership.server_id != server_id:
        raise ForbiddenError("membership is not on server")
    return membership


def _role_for_server(db: Session, role_id: int, server_id: int) -> Role:
    role = get_role_row(db, role_id)
    if role.server_id != server_id:
        raise ForbiddenError("role not on server")
    return role


def create_membership(db: Session, server_id: int, data: MembershipCreate) -> MemberRead:
    """
    Join a user to a server under a role of that server. nickname and
    picture_url default to the user's username and picture.
    """
    with atomic(db):
        user = db.get(User, data.user_id)
        if user is None:
            raise NotFoundError(f"no user with id {data.user_id}")
        role = _role_for_server(db, data.role_id, server_id)
        existing = (
            db.query(Membership.id)
            .filter(Membership.server_id == server_id, Membership.user_id == user.id)
            .first()
        )
        if existing is not None:
            raise ConflictError("user is already a member of this server")
        nickname = data.nickname or user.username
        membership = Membership(
            user_id=user.id,
            server_id=server_id,
            role_id=role.id,
            nickname=nickname,
            picture_url=data.picture_url or user.picture_url,
        )
        with unique_or_conflict(db, _nickname_taken(nickname)):
            db.add(membership)
        created = _member_read(membership, role)
    logger.info(
        "Membership created: id=%s user_id=%s server_id=%s role_id=%s",
        created.id,
        created.user_id,
        server_id,
        role.id,
    )
    return created


def find_memberships(
    db: Session,
    user_id: int | None = None,
    server_id: int | None = None,
    role_id: int | None = None,
) -> list[MemberRead]:
    """Memberships matching every filter given. At least one filter is required."""
    filters = []
    if user_id is not None:
        filters.append(Membership.user_id == user_id)
    if server_id is not None:
        filters.append(Membership.server_id == server_id)
    if role_id is not None:
        filters.append(Membership.role_id == role_id)
    if not filters:
        raise ValidationError("at least one of user_id, server_id, role_id is required")
    rows = db.execute(
        select(Membership, Role)
        .join(Role, Role.id == Membership.role_id)
        .where(*filters)
        .order_by(Membership.id)
    ).all()
    if not rows:
        raise NotFoundError("no memberships found")
    return [_member_read(membership, role) for membership, role in rows]


def find_by_server(db: Session, server_id: int) -> list[MemberRead]:
    return find_memberships(db, server_id=server_id)


def find_by_user(db: Session, user_id: int) -> list[MemberRead]:
    return find_memberships(db, user_id=user_id)


def find_by_role(db: Session, role_id: int) -> list[MemberRead]:
    return find_memberships(db, role_id=role_id)


def get_membership(db: Session, membership_id: int) -> MembershipDetail:
    """Membership with its role and the rooms that role can reach."""
    membership = get_membership_row(db, membership_id)
    role = get_role_row(db, membership.role_id)
    return MembershipDetail(
        **_member_read(membership, role).model_dump(),
        access=list_granted_rooms(db, role.id),
    )


def update_membership(
    db: Session, membership_id: int, patch: MembershipUpdate
) -> MemberRead:
    """
    Patch nickname, role and/or picture. A new role must be on the
    membership's server (ForbiddenError); a taken nickname is a ConflictError.
    """
    with atomic(db):
        membership = get_membership_row(db, membership_id)
        values = patch_values(patch, _UPDATABLE_COLUMNS, nullable=_NULLABLE_FIELDS)
        if "role_id" in values:
            _role_for_server(db, values["role_id"], membership.server_id)
        with unique_or_conflict(db, _nickname_taken(values.get("nickname"))):
            apply_values(membership, values)
        role = get_role_row(db, membership.role_id)
        return _member_read(membership, role)


def update_nickname(db: Session, membership_id: int, new_name: str) -> MemberRead:
    return update_membership(db, membership_id, MembershipUpdate(nickname=new_name))


def update_role(db: Session, membership_id: int, new_role_id: int) -> MemberRead:
    return update_membership(db, membership_id, MembershipUpdate(role_id=new_role_id))


def remove_membership(db: Session, membership_id: int) -> MembershipRead:
    """
    Delete a membership. The member's posts and reactions stay, with
    member_id cleared; user and server are untouched.
    """
    with atomic(db):
        membership = get_membership_row(db, membership_id)
        removed = MembershipRead.model_validate(membership)
        db.query(Reaction).filter(Reaction.member_id == membership_id).update(
            {Reaction.member_id: None}, synchronize_session=False
        )
        db.query(Post).filter(Post.member_id == membership_id).update(
            {Post.member_id: None}, synchronize_session=False
        )
        db.query(Membership).filter(Membership.id == membership_id).delete(
            synchronize_session=False
        )
    logger.info(
        "Membership removed: id=%s user_id=%s server_id=%s",
        membership_id,
        removed.user_id,
        removed.server_id,
    )
    return removed
