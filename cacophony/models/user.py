"""ORM model for site users (credentials, profile, site-admin flag)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from cacophony.models.base import Base


class User(Base):
    """
    Site account. Memberships bind it to servers; it never owns posts directly.

    last_seen is bumped on every authenticated request.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    picture_url = Column(String(2048), nullable=True)
    joining_date = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    last_seen = Column(DateTime(timezone=True), nullable=True)
    is_site_admin = Column(Boolean, nullable=False, default=False)
