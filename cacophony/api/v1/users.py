"""User accounts: listing, site-admin creation, and self-or-site-admin profile access."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cacophony.api.v1.auth import get_snapshot, require_snapshot
from cacophony.core.database import get_db
from cacophony.schemas.credentials import CredentialSnapshot
from cacophony.schemas.user import UserCreate, UserDetail, UserRead, UserSummary, UserUpdate
from cacophony.services import users as user_store
from cacophony.services.authorization import (
    Capability,
    require_self_or_site_admin,
    require_site_admin,
)

router = APIRouter()


@router.get("", response_model=list[UserSummary])
def list_users(
    _snapshot: Annotated[CredentialSnapshot, Depends(require_snapshot)],
    db: Annotated[Session, Depends(get_db)],
    username: Annotated[str | None, Query(min_length=1)] = None,
) -> list[UserSummary]:
    """All users, or the one matching ?username= (404 if none)."""
    if username is not None:
        return [user_store.find_user_by_username(db, username)]
    return user_store.list_users(db)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> UserRead:
    """Create a user, optionally a site admin (site admin only)."""
    require_site_admin(snapshot)
    return user_store.create_user(db, body)


@router.get("/{user_id}", response_model=UserDetail)
def get_user(
    user_id: int,
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> UserDetail:
    require_self_or_site_admin(snapshot, user_id)
    return user_store.get_user(db, user_id)


@router.patch("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    body: UserUpdate,
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> UserRead:
    """Patch username and/or picture. is_site_admin is honoured for site admins only."""
    capability = require_self_or_site_admin(snapshot, user_id)
    return user_store.update_profile(
        db,
        user_id,
        body,
        allow_site_admin_change=capability is Capability.SITE_ADMIN,
    )


@router.delete("/{user_id}", response_model=UserRead)
def delete_user(
    user_id: int,
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> UserRead:
    require_self_or_site_admin(snapshot, user_id)
    return user_store.remove_user(db, user_id)
