"""
Pytest fixtures and configuration.

This module provides shared fixtures for all tests:
- Settings built from explicit values (no .env, no environment)
- A fake Mattermost REST server served through httpx.MockTransport
- A fake websocket connection fed with frames by the test
- Sample users, teams, channels and events

Usage:
    def test_something(mm_server, mm_client):
        # fixtures are automatically injected
        pass
"""

import asyncio
import json
from typing import Optional
from unittest.mock import AsyncMock

import httpx
import pytest

from config import Settings
from pingbot.mattermost_client import MattermostClient
from pingbot.models import BotContext, Team, User


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring multiple components"
    )


# =============================================================================
# Sample Data
# =============================================================================

BOT_USER = {"id": "bot-user-id", "username": "samplebot", "email": "bot@example.com"}
OTHER_USER_ID = "human-user-id"

TEAMS = [
    {"id": "team-test-id", "name": "test", "display_name": "Test"},
    {"id": "team-other-id", "name": "other", "display_name": "Other"},
]

CHANNELS = [
    {"id": "chan-town-square", "name": "town-square", "team_id": "team-test-id"},
    {"id": "chan-general", "name": "general", "team_id": "team-test-id"},
]


def posted_frame(
    message: str,
    channel_id: str = "chan-general",
    user_id: str = OTHER_USER_ID,
    post_id: str = "post-1",
    seq: int = 1,
) -> str:
    """A websocket "posted" frame as the server sends it."""
    post = {
        "id": post_id,
        "channel_id": channel_id,
        "user_id": user_id,
        "message": message,
        "root_id": "",
    }
    return json.dumps({
        "event": "posted",
        "data": {"post": json.dumps(post), "channel_name": "general"},
        "broadcast": {"channel_id": channel_id},
        "seq": seq,
    })


# =============================================================================
# Fake Mattermost REST server
# =============================================================================

class FakeMattermostServer:
    """
    In-memory stand-in for the Mattermost v4 API.

    Endpoints named in ``fail`` answer with a 500 error body. Every request
    is recorded so tests can assert what the bot did and did not call.
    """

    TOKEN = "session-token"

    def __init__(
        self,
        teams: Optional[list] = None,
        channels: Optional[list] = None,
        version: str = "9.5.0",
        fail: tuple = (),
    ) -> None:
        self.teams = TEAMS if teams is None else teams
        self.channels = CHANNELS if channels is None else channels
        self.version = version
        self.fail = set(fail)
        self.requests: list[httpx.Request] = []
        self.posts: list[dict] = []

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def _error(self, status: int, message: str) -> httpx.Response:
        return httpx.Response(status, json={"id": "api.test.error", "message": message})

    def _authorized(self, request: httpx.Request) -> bool:
        return request.headers.get("Authorization") == f"Bearer {self.TOKEN}"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api/v4")

        if path == "/system/ping":
            if "ping" in self.fail:
                return self._error(500, "ping failed")
            return httpx.Response(
                200,
                json={"status": "OK"},
                headers={"X-Version-Id": self.version},
            )

        if path == "/users/login":
            if "login" in self.fail:
                return self._error(401, "Invalid login credentials")
            return httpx.Response(200, json=BOT_USER, headers={"Token": self.TOKEN})

        if not self._authorized(request):
            return self._error(401, "Invalid or expired session")

        if path == "/users/me":
            return httpx.Response(200, json=BOT_USER)

        if path == "/users/me/teams":
            if "initial_load" in self.fail:
                return self._error(500, "initial load failed")
            return httpx.Response(200, json=self.teams)

        if path.startswith("/users/me/teams/") and path.endswith("/channels"):
            if "channels" in self.fail:
                return self._error(500, "channels failed")
            return httpx.Response(200, json=self.channels)

        if path == "/posts" and request.method == "POST":
            if "posts" in self.fail:
                return self._error(500, "post failed")
            body = json.loads(request.content)
            self.posts.append(body)
            created = dict(body, id=f"created-{len(self.posts)}", user_id=BOT_USER["id"])
            return httpx.Response(201, json=created)

        return self._error(404, f"Unknown route {path}")


# =============================================================================
# Fake websocket connection
# =============================================================================

class FakeWebSocketConnection:
    """Async-iterable connection fed with frames by the test."""

    def __init__(self, frames: tuple = ()) -> None:
        self.sent: list[dict] = []
        self.closed = False
        self._frames: asyncio.Queue = asyncio.Queue()
        for frame in frames:
            self.feed(frame)

    def feed(self, frame: str) -> None:
        self._frames.put_nowait(frame)

    async def send(self, data: str) -> None:
        self.sent.append(json.loads(data))

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        frame = await self._frames.get()
        if frame is None:
            raise StopAsyncIteration
        return frame

    async def close(self) -> None:
        self.closed = True
        self._frames.put_nowait(None)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def mock_settings() -> Settings:
    """Settings with the bot's default values, isolated from .env."""
    return Settings(
        _env_file=None,
        mattermost_url="http://mattermost.test",
        bot_username="samplebot",
        bot_password="password1",
        team_name="test",
        monitor_town_square=False,
    )


@pytest.fixture
def mm_server() -> FakeMattermostServer:
    return FakeMattermostServer()


@pytest.fixture
def mm_client(mm_server) -> MattermostClient:
    """A real MattermostClient talking to the fake server."""
    return MattermostClient(
        "http://mattermost.test",
        transport=httpx.MockTransport(mm_server.handler),
    )


@pytest.fixture
def ws_connection() -> FakeWebSocketConnection:
    return FakeWebSocketConnection()


@pytest.fixture
def ws_connector(ws_connection):
    """Replacement for websockets.connect that records the URL it was given."""
    connector = AsyncMock(return_value=ws_connection)
    return connector


@pytest.fixture
def bot_context() -> BotContext:
    return BotContext(
        user=User.from_dict(BOT_USER),
        team=Team.from_dict(TEAMS[0]),
        ignored_channel_ids=frozenset({"chan-town-square"}),
    )


@pytest.fixture
def mock_client() -> AsyncMock:
    """MattermostClient double for responder and dispatcher tests."""
    client = AsyncMock(spec=MattermostClient)
    client.create_post.return_value = None
    return client
