"""ORM model for rooms within a server."""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint

from cacophony.models.base import Base


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("server_id", "name", name="uq_rooms_server_name"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    server_id = Column(Integer, ForeignKey("servers.id"), nullable=False, index=True)
    type = Column(String(32), nullable=False, default="text")
