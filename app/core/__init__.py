"""
Core module initialization.
Exports the configuration entry points.
"""

from app.core.config import get_settings, Settings, EnvironmentMode

__all__ = ["get_settings", "Settings", "EnvironmentMode"]
