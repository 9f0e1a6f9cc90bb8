"""
Centralized configuration for the Mattermost Ping Bot.

This module uses Pydantic Settings to load and validate environment variables.
Every field has a default suited to a local development server, so the
bot runs without any configuration.

Usage:
    from config import settings
    print(settings.mattermost_url)

Environment Variables:
    See .env.example for all available configuration options.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Mattermost Server
    # =========================================================================
    mattermost_url: str = "http://localhost:8065"
    # Realtime endpoint; derived from mattermost_url when unset
    mattermost_ws_url: Optional[str] = None
    request_timeout: float = 10.0  # seconds

    # =========================================================================
    # Bot Account
    # =========================================================================
    bot_username: str = "samplebot"
    bot_password: str = "password1"

    # =========================================================================
    # Team & Channels
    # =========================================================================
    team_name: str = "test"
    monitor_town_square: bool = False

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = "INFO"

    @property
    def websocket_url(self) -> str:
        """Realtime endpoint base (ws:// or wss://) for the configured server."""
        if self.mattermost_ws_url:
            return self.mattermost_ws_url.rstrip("/")

        url = self.mattermost_url.rstrip("/")
        if url.startswith("https://"):
            return "wss://" + url[len("https://"):]
        if url.startswith("http://"):
            return "ws://" + url[len("http://"):]
        return url


# Singleton instance for global settings
settings = Settings()
