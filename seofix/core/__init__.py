"""Core app configuration and database."""

from seofix.core.config import get_settings, settings
from seofix.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
