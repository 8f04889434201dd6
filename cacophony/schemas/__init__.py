"""Pydantic request/response schemas."""

from cacophony.schemas.credentials import CredentialSnapshot, MembershipClaim
from cacophony.schemas.health import HealthResponse
from cacophony.schemas.membership import (
    MemberRead,
    MembershipCreate,
    MembershipDetail,
    MembershipRead,
    MembershipUpdate,
)
from cacophony.schemas.post import (
    PostCreate,
    PostDetail,
    PostRead,
    PostWithReactions,
    ReactionCreate,
    ReactionRead,
)
from cacophony.schemas.role import (
    AccessGrantRead,
    Color,
    RoleCreate,
    RoleDetail,
    RoleRead,
    RoleUpdate,
)
from cacophony.schemas.room import RoomCreate, RoomDetail, RoomRead, RoomRemoval, RoomUpdate
from cacophony.schemas.server import (
    ServerCreate,
    ServerDetail,
    ServerRead,
    ServerSummary,
    ServerUpdate,
)
from cacophony.schemas.user import UserCreate, UserDetail, UserRead, UserSummary, UserUpdate

__all__ = [
    "AccessGrantRead",
    "Color",
    "CredentialSnapshot",
    "HealthResponse",
    "MemberRead",
    "MembershipClaim",
    "MembershipCreate",
    "MembershipDetail",
    "MembershipRead",
    "MembershipUpdate",
    "PostCreate",
    "PostDetail",
    "PostRead",
    "PostWithReactions",
    "ReactionCreate",
    "ReactionRead",
    "RoleCreate",
    "RoleDetail",
    "RoleRead",
    "RoleUpdate",
    "RoomCreate",
    "RoomDetail",
    "RoomRead",
    "RoomRemoval",
    "RoomUpdate",
    "ServerCreate",
    "ServerDetail",
    "ServerRead",
    "ServerSummary",
    "ServerUpdate",
    "UserCreate",
    "UserDetail",
    "UserRead",
    "UserSummary",
    "UserUpdate",
]
