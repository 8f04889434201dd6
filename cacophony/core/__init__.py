"""Core app configuration, database and errors."""

from cacophony.core.config import get_settings, settings
from cacophony.core.database import atomic, get_db

__all__ = ["atomic", "get_settings", "settings", "get_db"]
