"""Identity store: user accounts, credentials check and user removal cascade."""

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from cacophony.core.database import atomic
from cacophony.core.errors import AuthenticationError, NotFoundError
from cacophony.core.security import hash_password, verify_password
from cacophony.models import Membership, Post, Reaction, Role, Server, User
from cacophony.schemas.role import RoleRead
from cacophony.schemas.server import ServerRef
from cacophony.schemas.user import (
    UserCreate,
    UserDetail,
    UserMembership,
    UserRead,
    UserSummary,
    UserUpdate,
)
from cacophony.services.common import apply_values, patch_values, unique_or_conflict

logger = logging.getLogger(__name__)

# Patch field -> users column. is_site_admin is dropped unless the caller may grant it.
_UPDATABLE_COLUMNS = {
    "username": "username",
    "picture_url": "picture_url",
    "is_site_admin": "is_site_admin",
}
_NULLABLE_FIELDS = ("picture_url",)


def _get_user_row(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"no user with id {user_id}")
    return user


def authenticate(db: Session, username: str, password: str) -> UserRead:
    """
    Check username/password. Unknown username and wrong password raise the
    same AuthenticationError so callers cannot enumerate accounts.
    """
    user = db.query(User).filter(User.username == username).first()
    if user is None or not verify_password(password, user.hashed_password):
        raise AuthenticationError()
    return UserRead.model_validate(user)


def create_user(db: Session, data: UserCreate) -> UserRead:
    """Create a user; duplicate username -> ConflictError."""
    with atomic(db):
        user = User(
            username=data.username,
            hashed_password=hash_password(data.password),
            picture_url=data.picture_url,
            is_site_admin=data.is_site_admin,
            last_seen=datetime.now(UTC),
        )
        with unique_or_conflict(db, f"username {data.username!r} is already taken"):
            db.add(user)
        created = UserRead.model_validate(user)
    logger.info("User created: id=%s site_admin=%s", created.id, created.is_site_admin)
    return created


def list_users(db: Session) -> list[UserSummary]:
    users = db.query(User).order_by(User.id).all()
    return [UserSummary.model_validate(u) for u in users]


def find_user_by_username(db: Session, username: str) -> UserSummary:
    user = db.query(User).filter(User.username == username).first()
    if user is None:
        raise NotFoundError("no users with that username found")
    return UserSummary.model_validate(user)


def get_user(db: Session, user_id: int) -> UserDetail:
    """User profile with every membership, its server and its role."""
    user = _get_user_row(db, user_id)
    rows = db.execute(
        select(Membership, Server, Role)
        .join(Server, Server.id == Membership.server_id)
        .join(Role, Role.id == Membership.role_id)
        .where(Membership.user_id == user_id)
        .order_by(Membership.id)
    ).all()
    memberships = [
        UserMembership(
            id=membership.id,
            nickname=membership.nickname,
            joining_date=membership.joining_date,
            server=ServerRef.model_validate(server, from_attributes=True),
            role=RoleRead.model_validate(role),
        )
        for membership, server, role in rows
    ]
    return UserDetail(
        **UserRead.model_validate(user).model_dump(),
        memberships=memberships,
    )


def update_profile(
    db: Session,
    user_id: int,
    patch: UserUpdate,
    allow_site_admin_change: bool = False,
) -> UserRead:
    """
    Apply a profile patch. Only a site-admin caller may flip is_site_admin;
    for anyone else that field is silently left out of the update, and a
    patch carrying nothing else returns the profile unchanged.
    """
    columns = dict(_UPDATABLE_COLUMNS)
    if not allow_site_admin_change:
        columns.pop("is_site_admin")
    with atomic(db):
        user = _get_user_row(db, user_id)
        if not allow_site_admin_change and patch.model_fields_set == {"is_site_admin"}:
            return UserRead.model_validate(user)
        values = patch_values(patch, columns, nullable=_NULLABLE_FIELDS)
        with unique_or_conflict(db, f"username {patch.username!r} is already taken"):
            apply_values(user, values)
        return UserRead.model_validate(user)


def touch_last_seen(db: Session, user_id: int) -> datetime:
    """Stamp last_seen with the current time."""
    now = datetime.now(UTC)
    with atomic(db):
        updated = (
            db.query(User)
            .filter(User.id == user_id)
            .update({User.last_seen: now}, synchronize_session=False)
        )
        if not updated:
            raise NotFoundError(f"no user with id {user_id}")
    return now


def remove_user(db: Session, user_id: int) -> UserRead:
    """
    Delete a user. Posts and reactions made through the user's memberships
    keep existing with member_id cleared; the memberships themselves go.
    """
    with atomic(db):
        user = _get_user_row(db, user_id)
        removed = UserRead.model_validate(user)
        member_ids = select(Membership.id).where(Membership.user_id == user_id)

        reactions_cleared = (
            db.query(Reaction)
            .filter(Reaction.member_id.in_(member_ids))
            .update({Reaction.member_id: None}, synchronize_session=False)
        )
        posts_cleared = (
            db.query(Post)
            .filter(Post.member_id.in_(member_ids))
            .update({Post.member_id: None}, synchronize_session=False)
        )
        memberships_deleted = (
            db.query(Membership)
            .filter(Membership.user_id == user_id)
            .delete(synchronize_session=False)
        )
        db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
    logger.info(
        "User removed: id=%s memberships_deleted=%s posts_cleared=%s reactions_cleared=%s",
        user_id,
        memberships_deleted,
        posts_cleared,
        reactions_cleared,
    )
    return removed
