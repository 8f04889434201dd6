"""
Path-scope dependencies for routes nested under /servers/{server_id}.

They run before any authorization check: a missing server or resource is a
404, and a resource that exists on another server is a 403.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from cacophony.core.database import get_db
from cacophony.models import Membership, Post, Role, Room, Server
from cacophony.services.memberships import ensure_membership_on_server
from cacophony.services.posts import ensure_post_in_room
from cacophony.services.roles import ensure_role_on_server
from cacophony.services.rooms import ensure_room_on_server
from cacophony.services.servers import get_server_row


def server_in_path(
    server_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> Server:
    return get_server_row(db, server_id)


def room_in_server(
    room_id: int,
    server: Annotated[Server, Depends(server_in_path)],
    db: Annotated[Session, Depends(get_db)],
) -> Room:
    return ensure_room_on_server(db, server.id, room_id)


def role_in_server(
    role_id: int,
    server: Annotated[Server, Depends(server_in_path)],
    db: Annotated[Session, Depends(get_db)],
) -> Role:
    return ensure_role_on_server(db, server.id, role_id)


def membership_in_server(
    member_id: int,
    server: Annotated[Server, Depends(server_in_path)],
    db: Annotated[Session, Depends(get_db)],
) -> Membership:
    return ensure_membership_on_server(db, server.id, member_id)


def post_in_room(
    post_id: int,
    room: Annotated[Room, Depends(room_in_server)],
    db: Annotated[Session, Depends(get_db)],
) -> Post:
    return ensure_post_in_room(db, room.id, post_id)
