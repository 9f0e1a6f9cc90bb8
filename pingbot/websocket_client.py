"""
WebSocket Client - realtime event stream from the Mattermost server.

Once connected and authenticated, listen() starts a pump task that reads
frames off the socket, decodes them into WebSocketEvents and hands them
one at a time to ``event_channel``. The queue holds a single event, so the
pump waits for the consumer before reading the next frame.

Architecture:
    ┌─────────────────────────────────────────────────────────────┐
    │  socket frames ──► pump task ──► event_channel (size 1)     │
    │                                        │                    │
    │                                        ▼                    │
    │                               dispatcher (consumer)         │
    └─────────────────────────────────────────────────────────────┘

There is no reconnect: when the socket drops, the pump logs and exits.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from pingbot.mattermost_client import API_PREFIX
from pingbot.models import WebSocketEvent

logger = logging.getLogger(__name__)


class WebSocketClient:
    """Authenticated connection to the server's websocket endpoint."""

    def __init__(
        self,
        url: str,
        auth_token: str,
        connector: Optional[Callable[..., Any]] = None,
    ) -> None:
        """
        Args:
            url: Realtime base URL (e.g., ws://localhost:8065).
            auth_token: Session token obtained at login.
            connector: Replacement for websockets.connect, used in tests.
        """
        self.url = url.rstrip("/") + API_PREFIX + "/websocket"
        self.auth_token = auth_token
        self.event_channel: asyncio.Queue[WebSocketEvent] = asyncio.Queue(maxsize=1)

        self._connector = connector or websockets.connect
        self._connection = None
        self._sequence = 1
        self._listen_task: Optional[asyncio.Task] = None

    @property
    def connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> None:
        """
        Open the socket and send the authentication challenge.

        Raises:
            OSError, websockets.exceptions.WebSocketException: If the
            connection cannot be established.
        """
        self._connection = await self._connector(self.url)
        await self.send_message(
            "authentication_challenge", {"token": self.auth_token}
        )
        logger.info(f"Connected to websocket {self.url}")

    async def send_message(self, action: str, data: dict) -> None:
        """Send one client action frame."""
        frame = {"seq": self._sequence, "action": action, "data": data}
        self._sequence += 1
        await self._connection.send(json.dumps(frame))

    def listen(self) -> asyncio.Task:
        """Start pumping events into event_channel."""
        if self._listen_task is None:
            self._listen_task = asyncio.create_task(
                self._pump(), name="websocket_pump"
            )
        return self._listen_task

    async def _pump(self) -> None:
        try:
            async for raw in self._connection:
                event = WebSocketEvent.from_json(raw)
                if event is None:
                    continue
                await self.event_channel.put(event)
        except ConnectionClosed as e:
            logger.warning(f"Websocket connection closed: {e}")
        logger.info("Websocket listener stopped")

    async def close(self) -> None:
        """Close the socket and stop the pump. Safe to call more than once."""
        if self._listen_task and not self._listen_task.done():
            self._listen_task.cancel()
            try:
                await self._listen_task
            except asyncio.CancelledError:
                pass

        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("Websocket connection closed")
