"""ORM model for memberships (a user on a server under one role)."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)

from cacophony.models.base import Base


class Membership(Base):
    """
    Binds a user to a server through one role, with a server-local nickname.

    Nicknames are unique per server (case-sensitive).
    """

    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("server_id", "nickname", name="uq_memberships_server_nickname"),
        UniqueConstraint("server_id", "user_id", name="uq_memberships_server_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    server_id = Column(Integer, ForeignKey("servers.id"), nullable=False, index=True)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)
    nickname = Column(String(255), nullable=False)
    picture_url = Column(String(2048), nullable=True)
    joining_date = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
