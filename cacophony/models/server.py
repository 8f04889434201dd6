"""ORM model for servers (one independent chat community each)."""

from sqlalchemy import Column, DateTime, Integer, String, func

from cacophony.models.base import Base


class Server(Base):
    __tablename__ = "servers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    picture_url = Column(String(2048), nullable=True)
    start_date = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
