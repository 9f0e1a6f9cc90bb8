"""
Responder - decides whether a post deserves a reply and sends it.

The only trigger is the word "ping", matched case-sensitively as a whole
word. The reply is "PONG", posted in the same channel and threaded under
the triggering post.
"""

import logging
import re

import httpx

from pingbot.mattermost_client import MattermostClient, MattermostError
from pingbot.models import Post

logger = logging.getLogger(__name__)

PING_PATTERN = re.compile(r"(?:^|\W)ping(?:$|\W)")
PONG = "PONG"


def is_ping(message: str) -> bool:
    """True if the message contains "ping" as a whole word."""
    return PING_PATTERN.search(message) is not None


async def send_reply_msg_to_channel(
    client: MattermostClient,
    msg: str,
    channel_id: str,
    reply_to_id: str,
) -> bool:
    """
    Post a threaded reply.

    Failures are logged and swallowed; a lost reply is never retried.

    Returns:
        True if the server accepted the post.
    """
    post = Post(channel_id=channel_id, message=msg, root_id=reply_to_id)
    try:
        await client.create_post(post)
    except (MattermostError, httpx.HTTPError) as e:
        logger.error(f"Failed to send a message to the channel: {e}")
        return False
    return True


async def respond(client: MattermostClient, post: Post) -> bool:
    """
    Reply to a post if it is a ping.

    Returns:
        True if a reply was attempted.
    """
    if not is_ping(post.message):
        return False

    logger.info(f"Ping in channel {post.channel_id} from {post.user_id}, replying")
    await send_reply_msg_to_channel(client, PONG, post.channel_id, post.id)
    return True
