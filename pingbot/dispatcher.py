"""
Event Dispatcher - routes websocket events to the responder.

Events are consumed one at a time in delivery order. Only "posted" events
are considered; posts by the bot itself and posts in ignored channels are
dropped before the responder sees them.
"""

import asyncio
import logging

from pingbot.mattermost_client import MattermostClient
from pingbot.models import BotContext, Post, WebSocketEvent, WEBSOCKET_EVENT_POSTED
from pingbot.responder import respond

logger = logging.getLogger(__name__)


async def handle_event(
    client: MattermostClient,
    event: WebSocketEvent,
    context: BotContext,
) -> bool:
    """
    Handle one incoming event.

    Returns:
        True if the event was handed to the responder.
    """
    if event.event != WEBSOCKET_EVENT_POSTED:
        return False

    post = Post.from_json(event.data.get("post"))
    if post is None:
        logger.debug(f"Dropping posted event without a post (seq {event.seq})")
        return False

    # ignore my events
    if post.user_id == context.user.id:
        return False

    if context.is_ignored(post.channel_id):
        return False

    await respond(client, post)
    return True


async def run_dispatcher(
    events: "asyncio.Queue[WebSocketEvent]",
    client: MattermostClient,
    context: BotContext,
) -> None:
    """
    Consume events forever.

    This function runs until its task is cancelled at process shutdown.
    """
    logger.info("Event dispatcher started")
    while True:
        event = await events.get()
        try:
            await handle_event(client, event, context)
        except Exception as e:
            logger.error(f"Error handling {event.event} event (seq {event.seq}): {e!r}")
        finally:
            events.task_done()
