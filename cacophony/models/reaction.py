"""ORM model for per-post reactions."""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint

from cacophony.models.base import Base


class Reaction(Base):
    """One reaction of a given type per (member, post)."""

    __tablename__ = "reactions"
    __table_args__ = (
        UniqueConstraint(
            "member_id", "post_id", "type", name="uq_reactions_member_post_type"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("memberships.id"), nullable=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    type = Column(String(64), nullable=False)
