"""
Mattermost Client - async REST client for the Mattermost API (v4).

This module wraps the handful of endpoints the bot needs. The client is
stateful: a successful login stores the session token, and set_team_id()
binds every later team-scoped call to one team.

Endpoints:
    GET  /api/v4/system/ping                        liveness + version
    POST /api/v4/users/login                        session token + user
    GET  /api/v4/users/me, /api/v4/users/me/teams   initial load
    GET  /api/v4/users/me/teams/{team_id}/channels  channel listing
    POST /api/v4/posts                              post creation

Usage:
    from pingbot.mattermost_client import MattermostClient

    client = MattermostClient("http://localhost:8065")
    props = await client.get_ping()
    user = await client.login("samplebot", "password1")
"""

import logging
from typing import Any, Callable, Optional, TypeVar

import httpx

from pingbot.models import Channel, InitialLoad, Post, Team, User

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v4"

T = TypeVar("T")


class MattermostError(Exception):
    """Raised when the server answers a request with an error status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_id: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_id = error_id

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (status {self.status_code})"


class MattermostClient:
    """
    Async client for the Mattermost REST API.

    No request is retried; transport failures surface as httpx.HTTPError
    and error responses as MattermostError.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Server URL (e.g., http://localhost:8065).
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport, used to fake the server in tests.
        """
        self.base_url = base_url.rstrip("/")
        self.auth_token: Optional[str] = None
        self.team_id: Optional[str] = None
        self._http = httpx.AsyncClient(
            base_url=self.base_url + API_PREFIX,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Release the underlying connection pool."""
        await self._http.aclose()

    # =========================================================================
    # Low-level request helpers
    # =========================================================================

    def _headers(self) -> dict:
        headers = {"X-Requested-With": "XMLHttpRequest"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
    ) -> httpx.Response:
        response = await self._http.request(
            method, path, json=json, headers=self._headers()
        )
        if response.is_error:
            raise self._error_from_response(response)
        return response

    @staticmethod
    def _error_from_response(response: httpx.Response) -> MattermostError:
        """Build an error from the server's {"id", "message"} error body."""
        message = f"{response.request.method} {response.request.url.path} failed"
        error_id = ""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or message
            error_id = body.get("id", "")
        return MattermostError(message, status_code=response.status_code, error_id=error_id)

    @staticmethod
    def _decode(response: httpx.Response, parse: Callable[[Any], T]) -> T:
        """
        Parse a successful response body.

        Raises:
            MattermostError: If the body is not JSON or lacks required fields,
                e.g. when the URL points at something other than Mattermost.
        """
        try:
            return parse(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            request = response.request
            raise MattermostError(
                f"Unexpected response body from {request.method} {request.url.path}: {e!r}",
                status_code=response.status_code,
            ) from e

    def _require_team(self) -> str:
        if not self.team_id:
            raise MattermostError("No team selected; call set_team_id() first")
        return self.team_id

    # =========================================================================
    # API operations
    # =========================================================================

    async def get_ping(self) -> dict:
        """
        Check that the server is up.

        Returns:
            Server properties, always including a "version" key.
        """
        response = await self._request("GET", "/system/ping")
        props = self._decode(response, lambda body: body)
        if not isinstance(props, dict):
            props = {}
        props.setdefault("version", response.headers.get("X-Version-Id", ""))
        return props

    async def login(self, login_id: str, password: str) -> User:
        """
        Authenticate and keep the session token for all further calls.

        Returns:
            The logged-in user record.
        """
        response = await self._request(
            "POST",
            "/users/login",
            json={"login_id": login_id, "password": password},
        )
        token = response.headers.get("Token")
        if not token:
            raise MattermostError("Login response did not include a session token")
        user = self._decode(response, User.from_dict)
        self.auth_token = token
        logger.debug(f"Logged in as {user.username} ({user.id})")
        return user

    async def get_initial_load(self) -> InitialLoad:
        """Load the current user and every team the user belongs to."""
        me = await self._request("GET", "/users/me")
        teams = await self._request("GET", "/users/me/teams")
        return InitialLoad(
            user=self._decode(me, User.from_dict),
            teams=self._decode(teams, lambda body: [Team.from_dict(t) for t in body]),
        )

    def set_team_id(self, team_id: str) -> None:
        """Bind all subsequent team-scoped calls to this team."""
        self.team_id = team_id

    async def get_channels(self) -> list[Channel]:
        """List the channels the user belongs to in the active team."""
        team_id = self._require_team()
        response = await self._request("GET", f"/users/me/teams/{team_id}/channels")
        return self._decode(response, lambda body: [Channel.from_dict(c) for c in body])

    async def create_post(self, post: Post) -> Post:
        """
        Submit a post.

        Returns:
            The post as stored by the server.
        """
        response = await self._request("POST", "/posts", json=post.to_create_payload())
        return self._decode(response, Post.from_dict)
