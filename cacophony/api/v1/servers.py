"""Servers: creation with bootstrap, listing, details, update and removal."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cacophony.api.v1.auth import get_snapshot, require_snapshot
from cacophony.api.v1.scope import server_in_path
from cacophony.core.database import get_db
from cacophony.models import Server
from cacophony.schemas.credentials import CredentialSnapshot
from cacophony.schemas.server import (
    ServerCreate,
    ServerDetail,
    ServerRead,
    ServerSummary,
    ServerUpdate,
)
from cacophony.services import servers as server_store
from cacophony.services.authorization import require_member, require_server_admin

router = APIRouter()


@router.post("", response_model=ServerDetail, status_code=status.HTTP_201_CREATED)
def create_server(
    body: ServerCreate,
    snapshot: Annotated[CredentialSnapshot, Depends(require_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> ServerDetail:
    """
    Create a server. The caller becomes its first member under the admin
    role, and a default room is set up. Refresh the token afterwards to act
    as the new server's admin.
    """
    return server_store.create_server(db, body, founder_user_id=snapshot.user_id)


@router.get("", response_model=list[ServerSummary])
def list_servers(
    _snapshot: Annotated[CredentialSnapshot, Depends(require_snapshot)],
    db: Annotated[Session, Depends(get_db)],
    name: Annotated[str | None, Query(min_length=1)] = None,
) -> list[ServerSummary]:
    """All servers with member counts, or those named ?name= (404 if none)."""
    if name is not None:
        return server_store.find_servers_by_name(db, name)
    return server_store.list_servers(db)


@router.get("/{server_id}", response_model=ServerDetail)
def get_server(
    server: Annotated[Server, Depends(server_in_path)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> ServerDetail:
    require_member(snapshot, server.id)
    return server_store.get_server(db, server.id)


@router.patch("/{server_id}", response_model=ServerRead)
def update_server(
    body: ServerUpdate,
    server: Annotated[Server, Depends(server_in_path)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> ServerRead:
    require_server_admin(snapshot, server.id)
    return server_store.update_server(db, server.id, body)


@router.delete("/{server_id}", response_model=ServerRead)
def delete_server(
    server: Annotated[Server, Depends(server_in_path)],
    snapshot: Annotated[CredentialSnapshot | None, Depends(get_snapshot)],
    db: Annotated[Session, Depends(get_db)],
) -> ServerRead:
    """Remove the server and everything on it."""
    require_server_admin(snapshot, server.id)
    return server_store.remove_server(db, server.id)
