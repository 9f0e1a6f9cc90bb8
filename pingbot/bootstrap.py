"""
Bootstrap - the ordered startup handshake.

Steps (strictly in order):
    1. Ping the server and report its version
    2. Log in as the bot user (the client keeps the session token)
    3. Load the initial state (teams)
    4. Find the configured team
    5. Bind the client to that team
    6. List channels and compute the ignore set

Any failure in steps 1-4 raises BootstrapError; the caller logs it and
exits with status 1. A failed channel listing is logged and leaves the
ignore set empty.
"""

import logging
from typing import Iterable, Optional

import httpx

from config import Settings
from pingbot.mattermost_client import MattermostClient, MattermostError
from pingbot.models import BotContext, Channel, Team, TOWN_SQUARE

logger = logging.getLogger(__name__)


class BootstrapError(Exception):
    """A fatal startup failure."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


def select_team(teams: Iterable[Team], team_name: str) -> Optional[Team]:
    """Return the first team whose name is exactly team_name."""
    for team in teams:
        if team.name == team_name:
            return team
    return None


def compute_ignore_set(
    channels: Iterable[Channel],
    monitor_town_square: bool,
) -> frozenset:
    """
    Work out which channels the bot ignores.

    Town square is ignored unless monitor_town_square is set; every other
    channel is monitored.
    """
    ignored = set()
    for channel in channels:
        if channel.name == TOWN_SQUARE and not monitor_town_square:
            ignored.add(channel.id)
        else:
            logger.info(f"Monitoring channel: {channel.name}")
    return frozenset(ignored)


async def bootstrap(client: MattermostClient, settings: Settings) -> BotContext:
    """
    Run the startup handshake against the server.

    Args:
        client: Unauthenticated client; logged in and team-bound on return.
        settings: Bot configuration.

    Returns:
        The BotContext shared by the dispatcher and responder.

    Raises:
        BootstrapError: If the server is unreachable, login or the initial
            load fails, or the bot is not a member of the configured team.
    """
    api_errors = (MattermostError, httpx.HTTPError)

    # 1. Make sure we can reach the server
    try:
        props = await client.get_ping()
    except api_errors as e:
        raise BootstrapError(
            "There was a problem pinging the Mattermost server. Are you sure it's running?",
            e,
        ) from e
    logger.info(f"Server detected and is running version {props.get('version', '')}")

    # 2. Log in; this sets the token used by every later call
    try:
        bot_user = await client.login(settings.bot_username, settings.bot_password)
    except api_errors as e:
        raise BootstrapError(
            "There was a problem logging into the Mattermost server. "
            "Are you sure the bot account exists?",
            e,
        ) from e
    logger.info(f"Logged in as {bot_user.username}")

    # 3. Load teams
    try:
        initial_load = await client.get_initial_load()
    except api_errors as e:
        raise BootstrapError("We failed to get the initial load", e) from e

    # 4. Find our team
    bot_team = select_team(initial_load.teams, settings.team_name)
    if bot_team is None:
        raise BootstrapError(
            f"We do not appear to be a member of the team '{settings.team_name}'"
        )

    # 5. Every team-scoped request from here on uses this team
    client.set_team_id(bot_team.id)

    # 6. Channels to ignore
    try:
        channels = await client.get_channels()
    except api_errors as e:
        logger.error(f"Couldn't get channels: {e}")
        channels = []

    ignored = compute_ignore_set(channels, settings.monitor_town_square)

    return BotContext(user=bot_user, team=bot_team, ignored_channel_ids=ignored)
