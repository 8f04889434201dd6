"""ORM model for server-scoped roles."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String

from cacophony.models.base import Base

# White, packed as r << 16 | g << 8 | b.
DEFAULT_COLOR_INT = 0xFFFFFF


class Role(Base):
    """
    Named permission bundle on exactly one server.

    color is the packed 24-bit RGB value; the domain type is schemas.Color.
    """

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    server_id = Column(Integer, ForeignKey("servers.id"), nullable=False, index=True)
    color = Column(Integer, nullable=False, default=DEFAULT_COLOR_INT)
    is_admin = Column(Boolean, nullable=False, default=False)


def pack_color(r: int, g: int, b: int) -> int:
    """Pack an RGB triple into the stored integer. Channels must be in [0, 255]."""
    for channel in (r, g, b):
        if not 0 <= channel <= 255:
            raise ValueError("color channels must be between 0 and 255")
    return (r << 16) | (g << 8) | b


def unpack_color(value: int) -> tuple[int, int, int]:
    """Inverse of pack_color."""
    if not 0 <= value <= 0xFFFFFF:
        raise ValueError("stored color is outside the 24-bit range")
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF
