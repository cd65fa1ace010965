"""Core app configuration and shared review state."""

from app.core.config import get_settings, settings
from app.core.state import get_projection, get_runner, get_store

__all__ = ["get_settings", "settings", "get_projection", "get_runner", "get_store"]
