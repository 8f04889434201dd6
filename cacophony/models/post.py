"""ORM model for posts authored by a membership into a room."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, func

from cacophony.models.base import Base


class Post(Base):
    """
    Message content. member_id is cleared, not cascaded, when the author's
    membership goes away, so history survives without attribution.
    """

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("memberships.id"), nullable=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    post_date = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    threaded_from = Column(
        Integer,
        ForeignKey("posts.id", ondelete="SET NULL"),
        nullable=True,
    )
