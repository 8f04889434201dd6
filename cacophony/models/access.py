"""ORM model for room-access grants (role <-> room, optionally moderator)."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer

from cacophony.models.base import Base


class Access(Base):
    """One grant per (role, room). Both ends must live on the same server."""

    __tablename__ = "access"

    role_id = Column(Integer, ForeignKey("roles.id"), primary_key=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), primary_key=True, index=True)
    is_moderator = Column(Boolean, nullable=False, default=False)
