"""Rooms of a server, and the roles granted access to each."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cacophony.api.v1.auth import get_snapshot
from cacophony.api.v1.scope import room_in_server, server_in_path
from cacophony.core.database import get_db
from cacophony.models import Room, Server
from cacophony.schemas.credentials import CredentialSnapshot
from cacophony.schemas.room import (
    GrantedRole,
    RoomCreate,
    RoomDetail,
    RoomRead,
    RoomRemoval,
    RoomUpdate,
)
from cacophony.services import rooms as room_store
from cacophony.services.authorization import require_member, require_server_admin

router = APIRouter()


@router.post("/{server_id}/rooms", response_model=RoomRead, status_code=status.HTTP_201_CREATED)
def create_room(
    body: RoomCreate,
    server: Annotated[Server, Depends(server_in_path)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> RoomRead:
    require_server_admin(snapshot, server.id)
    return room_store.create_room(db, server.id, body)


@router.get("/{server_id}/rooms", response_model=list[RoomRead])
def list_rooms(
    server: Annotated[Server, Depends(server_in_path)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> list[RoomRead]:
    require_member(snapshot, server.id)
    return room_store.list_rooms(db, server.id)


@router.get("/{server_id}/rooms/{room_id}", response_model=RoomDetail)
def get_room(
    room: Annotated[Room, Depends(room_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> RoomDetail:
    """Room with the members who can reach it and its posts."""
    require_member(snapshot, room.server_id)
    return room_store.get_room(db, room.id)


@router.get("/{server_id}/rooms/{room_id}/roles", response_model=list[GrantedRole])
def list_granted_roles(
    room: Annotated[Room, Depends(room_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> list[GrantedRole]:
    require_member(snapshot, room.server_id)
    return room_store.list_granted_roles(db, room.id)


@router.patch("/{server_id}/rooms/{room_id}", response_model=RoomRead)
def update_room(
    body: RoomUpdate,
    room: Annotated[Room, Depends(room_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> RoomRead:
    require_server_admin(snapshot, room.server_id)
    return room_store.update_room(db, room.id, body)


@router.delete("/{server_id}/rooms/{room_id}", response_model=RoomRemoval)
def delete_room(
    room: Annotated[Room, Depends(room_in_server)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> RoomRemoval:
    """Remove the room; its posts and reactions are returned."""
    require_server_admin(snapshot, room.server_id)
    return room_store.remove_room(db, room.id)
