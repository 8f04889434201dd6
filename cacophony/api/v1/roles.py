"""Roles of a server and their room-access grants (admin only, except listing)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cacophony.api.v1.auth import get_snapshot
from cacophony.api.v1.scope import role_in_server, room_in_server, server_in_path
from cacophony.core.database import get_db
from cacophony.models import Role, Room, Server
from cacophony.schemas.credentials import CredentialSnapshot
from cacophony.schemas.role import (
    AccessGrantCreate,
    AccessGrantRead,
    ModeratorStatusUpdate,
    RoleCreate,
    RoleDetail,
    RoleRead,
    RoleUpdate,
)
from cacophony.services import roles as role_store
from cacophony.services.authorization import require_member, require_server_admin

router = APIRouter()


@router.post("/{server_id}/roles", response_model=RoleRead, status_code=status.HTTP_201_CREATED)
def create_role(
    body: RoleCreate,
    server: Annotated[Server, Depends(server_in_path)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleRead:
    require_server_admin(snapshot, server.id)
    return role_store.create_role(db, server.id, body)


@router.get("/{server_id}/roles", response_model=list[RoleRead])
def list_roles(
    server: Annotated[Server, Depends(server_in_path)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> list[RoleRead]:
    require_member(snapshot, server.id)
    return role_store.list_roles(db, server.id)


@router.get("/{server_id}/roles/{role_id}", response_model=RoleDetail)
def get_role(
    role: Annotated[Role, Depends(role_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleDetail:
    """Role with its members and the rooms it can reach."""
    require_server_admin(snapshot, role.server_id)
    return role_store.get_role(db, role.id)


@router.patch("/{server_id}/roles/{role_id}", response_model=RoleRead)
def update_role(
    body: RoleUpdate,
    role: Annotated[Role, Depends(role_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleRead:
    require_server_admin(snapshot, role.server_id)
    return role_store.update_role(db, role.id, body)


@router.delete("/{server_id}/roles/{role_id}", response_model=RoleRead)
def delete_role(
    role: Annotated[Role, Depends(role_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleRead:
    """Remove a role nobody holds; 409 while members still have it."""
    require_server_admin(snapshot, role.server_id)
    return role_store.remove_role(db, role.id)


@router.post(
    "/{server_id}/roles/{role_id}/access/{room_id}",
    response_model=AccessGrantRead,
    status_code=status.HTTP_201_CREATED,
)
def grant_access(
    body: AccessGrantCreate,
    role: Annotated[Role, Depends(role_in_server)],
    room: Annotated[Room, Depends(room_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> AccessGrantRead:
    require_server_admin(snapshot, role.server_id)
    return role_store.add_access(db, role.id, room.id, is_moderator=body.is_moderator)


@router.patch("/{server_id}/roles/{role_id}/access/{room_id}", response_model=AccessGrantRead)
def change_moderator_status(
    body: ModeratorStatusUpdate,
    role: Annotated[Role, Depends(role_in_server)],
    room: Annotated[Room, Depends(room_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> AccessGrantRead:
    """Set is_moderator on the grant, or toggle it when omitted."""
    require_server_admin(snapshot, role.server_id)
    return role_store.change_moderator_status(db, role.id, room.id, body.is_moderator)


@router.delete(
    "/{server_id}/roles/{role_id}/access/{room_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def revoke_access(
    role: Annotated[Role, Depends(role_in_server)],
    room: Annotated[Room, Depends(room_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> None:
    require_server_admin(snapshot, role.server_id)
    role_store.remove_access(db, role.id, room.id)
