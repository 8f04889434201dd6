"""Memberships of a server: joining, listing, self-or-admin edits and leaving."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cacophony.api.v1.auth import get_snapshot
from cacophony.api.v1.scope import membership_in_server, server_in_path
from cacophony.core.database import get_db
from cacophony.models import Membership, Server
from cacophony.schemas.credentials import CredentialSnapshot
from cacophony.schemas.membership import (
    MemberRead,
    MembershipCreate,
    MembershipDetail,
    MembershipRead,
    MembershipUpdate,
)
from cacophony.services import memberships as membership_store
from cacophony.services.authorization import (
    require_admin_or_self,
    require_member,
    require_server_admin,
)

router = APIRouter()


@router.post(
    "/{server_id}/members", response_model=MemberRead, status_code=status.HTTP_201_CREATED
)
def create_member(
    body: MembershipCreate,
    server: Annotated[Server, Depends(server_in_path)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> MemberRead:
    """Add a user to the server under one of its roles."""
    require_server_admin(snapshot, server.id)
    return membership_store.create_membership(db, server.id, body)


@router.get("/{server_id}/members", response_model=list[MemberRead])
def list_members(
    server: Annotated[Server, Depends(server_in_path)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> list[MemberRead]:
    require_member(snapshot, server.id)
    return membership_store.find_by_server(db, server.id)


@router.get("/{server_id}/members/{member_id}", response_model=MembershipDetail)
def get_member(
    membership: Annotated[Membership, Depends(membership_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> MembershipDetail:
    require_member(snapshot, membership.server_id)
    return membership_store.get_membership(db, membership.id)


@router.patch("/{server_id}/members/{member_id}", response_model=MemberRead)
def update_member(
    body: MembershipUpdate,
    membership: Annotated[Membership, Depends(membership_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> MemberRead:
    """Members may change their own nickname and picture; changing a role takes an admin."""
    if body.role_id is not None:
        require_server_admin(snapshot, membership.server_id)
    else:
        require_admin_or_self(snapshot, membership.server_id, membership.id)
    return membership_store.update_membership(db, membership.id, body)


@router.delete("/{server_id}/members/{member_id}", response_model=MembershipRead)
def delete_member(
    membership: Annotated[Membership, Depends(membership_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> MembershipRead:
    """Remove a member (or leave); their posts and reactions stay, unattributed."""
    require_admin_or_self(snapshot, membership.server_id, membership.id)
    return membership_store.remove_membership(db, membership.id)
