"""
Configuration package for the Mattermost Ping Bot.

Modules:
    settings: Centralized configuration using Pydantic Settings
"""

from config.settings import Settings, settings

__all__ = ["Settings", "settings"]
