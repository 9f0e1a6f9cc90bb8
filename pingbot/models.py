"""
Data structures shared by the bot components.

Everything here lives in memory for at most the lifetime of the process.
User, Team and the BotContext are created once during bootstrap; posts and
websocket events are parsed, handled once and discarded.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Websocket event kind emitted when a message is posted
WEBSOCKET_EVENT_POSTED = "posted"

# Name of the default channel every team member is joined to
TOWN_SQUARE = "town-square"


def _text(data: dict, key: str) -> str:
    """String field of a decoded payload; null or non-string values read as empty."""
    value = data.get(key)
    return value if isinstance(value, str) else ""


@dataclass
class User:
    """The account record returned by the server at login."""
    id: str
    username: str
    email: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=data["id"],
            username=data.get("username", ""),
            email=data.get("email", ""),
        )


@dataclass
class Team:
    """A named workspace on the server."""
    id: str
    name: str
    display_name: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Team":
        return cls(
            id=data["id"],
            name=data["name"],
            display_name=data.get("display_name", ""),
        )


@dataclass
class Channel:
    """A channel inside the bound team."""
    id: str
    name: str
    display_name: str = ""
    team_id: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Channel":
        return cls(
            id=data["id"],
            name=data["name"],
            display_name=data.get("display_name", ""),
            team_id=data.get("team_id", ""),
        )


@dataclass
class InitialLoad:
    """Everything the bot needs to know right after login."""
    user: Optional[User] = None
    teams: list[Team] = field(default_factory=list)


@dataclass
class Post:
    """
    A single message.

    Incoming posts are parsed from websocket payloads; outgoing posts are
    built by the responder with an empty id and submitted once.
    ``root_id`` threads a post under another one; empty means top-level.
    """
    channel_id: str
    message: str
    id: str = ""
    user_id: str = ""
    root_id: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Post":
        return cls(
            id=_text(data, "id"),
            channel_id=_text(data, "channel_id"),
            user_id=_text(data, "user_id"),
            message=_text(data, "message"),
            root_id=_text(data, "root_id"),
        )

    @classmethod
    def from_json(cls, raw: Any) -> Optional["Post"]:
        """
        Parse a serialized post as carried in a websocket event.

        Returns:
            The Post, or None when the payload is missing or is not a JSON object.
        """
        if not isinstance(raw, (str, bytes, bytearray)):
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        return cls.from_dict(data)

    def to_create_payload(self) -> dict:
        """Request body for post creation."""
        payload = {
            "channel_id": self.channel_id,
            "message": self.message,
        }
        if self.root_id:
            payload["root_id"] = self.root_id
        return payload


@dataclass
class WebSocketEvent:
    """One asynchronous occurrence pushed by the server."""
    event: str
    data: dict = field(default_factory=dict)
    broadcast: dict = field(default_factory=dict)
    seq: Optional[int] = None

    @classmethod
    def from_json(cls, raw: Any) -> Optional["WebSocketEvent"]:
        """
        Decode one websocket frame.

        Frames that are not events (such as the reply to the authentication
        challenge, which carries ``status`` and ``seq_reply``) yield None.
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug(f"Dropping undecodable websocket frame: {raw!r}")
            return None
        if not isinstance(data, dict):
            return None
        kind = data.get("event")
        if not kind or not isinstance(kind, str):
            return None
        payload = data.get("data") or {}
        if not isinstance(payload, dict):
            logger.debug(f"Dropping event with non-object data: {raw!r}")
            return None
        broadcast = data.get("broadcast")
        return cls(
            event=kind,
            data=payload,
            broadcast=broadcast if isinstance(broadcast, dict) else {},
            seq=data.get("seq"),
        )


@dataclass(frozen=True)
class BotContext:
    """
    Read-only state produced by bootstrap.

    Shared by the dispatcher and responder for the rest of the process
    lifetime; nothing writes to it after construction.
    """
    user: User
    team: Team
    ignored_channel_ids: frozenset = frozenset()

    def is_ignored(self, channel_id: str) -> bool:
        return channel_id in self.ignored_channel_ids
