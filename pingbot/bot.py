"""
Main orchestrator for the Mattermost Ping Bot.

This module wires the components together and owns the process lifecycle.

Responsibilities:
    1. Run the bootstrap handshake (exit 1 on failure)
    2. Open the realtime websocket and start its listener
    3. Run the event dispatcher as a background task
    4. Shut down on SIGINT/SIGTERM, closing the websocket first

Flow:
    ┌─────────────────────────────────────────────────────────────┐
    │  1. Ping → login → initial load → team → channels           │
    │  2. Connect websocket with the session token                │
    │  3. Dispatcher consumes events until interrupted            │
    │  4. Interrupt → close websocket → release main wait         │
    └─────────────────────────────────────────────────────────────┘

Entry Point:
    python -m pingbot.bot
"""

import asyncio
import logging
import signal
import sys
from enum import Enum
from typing import Callable, Optional

from websockets.exceptions import WebSocketException

from config import Settings, settings as default_settings
from pingbot import __version__
from pingbot.bootstrap import BootstrapError, bootstrap
from pingbot.dispatcher import run_dispatcher
from pingbot.mattermost_client import MattermostClient
from pingbot.models import BotContext
from pingbot.websocket_client import WebSocketClient

# Configure logging
logging.basicConfig(
    level=default_settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
# Suppress noisy transport logs
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("websockets").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


class LifecycleState(Enum):
    """Lifecycle of a started bot."""
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


class PingBot:
    """
    Ties the client, websocket and dispatcher together.

    This class handles:
    - Bootstrap
    - Websocket connection and listener start
    - Dispatcher task
    - One-shot shutdown on interrupt
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[MattermostClient] = None,
        websocket_factory: Optional[Callable[[str, str], WebSocketClient]] = None,
    ) -> None:
        self.settings = settings or default_settings
        self.client = client or MattermostClient(
            self.settings.mattermost_url,
            timeout=self.settings.request_timeout,
        )
        self._websocket_factory = websocket_factory or WebSocketClient

        self.context: Optional[BotContext] = None
        self.websocket: Optional[WebSocketClient] = None
        self.state: Optional[LifecycleState] = None

        self._dispatcher_task: Optional[asyncio.Task] = None
        self._shutdown_task: Optional[asyncio.Task] = None
        self._shutdown_complete = asyncio.Event()

    async def initialize(self) -> bool:
        """
        Run the bootstrap handshake.

        Returns:
            True on success, False if the bot cannot start.
        """
        try:
            self.context = await bootstrap(self.client, self.settings)
        except BootstrapError as e:
            logger.error(e.message)
            if e.cause is not None:
                logger.error(str(e.cause))
            return False
        return True

    async def connect_websocket(self) -> None:
        """
        Open the realtime connection.

        A failure here is logged but does not stop the bot; the dispatcher
        then waits on a stream that never delivers.
        """
        self.websocket = self._websocket_factory(
            self.settings.websocket_url, self.client.auth_token
        )
        try:
            await self.websocket.connect()
        except (OSError, WebSocketException) as e:
            logger.error(f"We failed to connect to the web socket: {e}")
            return
        if self.state == LifecycleState.SHUTTING_DOWN:
            return
        self.websocket.listen()

    async def start(self) -> None:
        """
        Connect the websocket and start the dispatcher task.

        If shutdown was requested while connecting, the websocket is closed
        again and the bot never enters RUNNING.
        """
        if self.context is None:
            raise RuntimeError("PingBot.start() called before initialize()")

        await self.connect_websocket()

        if self.state == LifecycleState.SHUTTING_DOWN:
            logger.info("Shutdown requested during startup")
            await self._close_websocket()
            return

        self._dispatcher_task = asyncio.create_task(
            run_dispatcher(self.websocket.event_channel, self.client, self.context),
            name="event_dispatcher",
        )
        self.state = LifecycleState.RUNNING
        logger.info(f"Bot running as {self.context.user.username} in team {self.context.team.name}")

    def request_shutdown(self) -> None:
        """Begin shutdown. Only the first call has any effect."""
        if self.state == LifecycleState.SHUTTING_DOWN:
            return
        logger.info("Shutdown signal received")
        self.state = LifecycleState.SHUTTING_DOWN
        self._shutdown_task = asyncio.create_task(self._shutdown(), name="shutdown")

    async def _close_websocket(self) -> None:
        if self.websocket is None:
            return
        try:
            await self.websocket.close()
        except Exception as e:
            logger.debug(f"Websocket close error (ignored): {e}")

    async def _shutdown(self) -> None:
        await self._close_websocket()
        self._shutdown_complete.set()

    async def run_until_shutdown(self) -> None:
        """Block until shutdown has closed the websocket."""
        await self._shutdown_complete.wait()

    async def stop(self) -> None:
        """Cancel the dispatcher, close the websocket and release the HTTP client."""
        if self._dispatcher_task and not self._dispatcher_task.done():
            self._dispatcher_task.cancel()
            try:
                await self._dispatcher_task
            except asyncio.CancelledError:
                pass

        await self._close_websocket()
        await self.client.close()
        logger.info("Bot stopped")


async def main() -> int:
    """
    Main entry point for the bot.

    Returns:
        Process exit code: 0 after an interrupt, 1 if bootstrap failed.
    """
    logger.info(f"Starting Mattermost Ping Bot v{__version__}")
    logger.info(f"Server: {default_settings.mattermost_url} / team: {default_settings.team_name}")

    bot = PingBot()

    if not await bot.initialize():
        await bot.client.close()
        return 1

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, bot.request_shutdown)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await bot.start()
    try:
        await bot.run_until_shutdown()
    finally:
        await bot.stop()

    logger.info("Bot shutdown complete")
    return 0


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        # Interrupt arrived before the signal handlers were installed
        sys.exit(0)


if __name__ == "__main__":
    run()
