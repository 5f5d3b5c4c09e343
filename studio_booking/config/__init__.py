"""
Configuration package for the studio booking engine.

Contains environment settings and database session management.
"""

from studio_booking.config.settings import Settings, get_settings, settings
from studio_booking.config.database import get_db_session, init_db

__all__ = ["Settings", "get_settings", "settings", "get_db_session", "init_db"]
