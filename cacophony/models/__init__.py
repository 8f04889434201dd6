"""SQLAlchemy ORM models."""

from cacophony.models.access import Access
from cacophony.models.base import Base
from cacophony.models.membership import Membership
from cacophony.models.post import Post
from cacophony.models.reaction import Reaction
from cacophony.models.role import Role
from cacophony.models.room import Room
from cacophony.models.server import Server
from cacophony.models.user import User

__all__ = [
    "Access",
    "Base",
    "Membership",
    "Post",
    "Reaction",
    "Role",
    "Room",
    "Server",
    "User",
]
