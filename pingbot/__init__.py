"""
Mattermost Ping Bot - answers "ping" with "PONG" in team channels.

The bot logs in to a Mattermost server, binds itself to one team, listens
on the realtime websocket and replies in-thread to every whole-word "ping"
posted by someone else in a monitored channel.

Modules:
    bot: Lifecycle controller and entry point
    bootstrap: Ordered startup handshake producing the BotContext
    dispatcher: Routes websocket events to the responder
    responder: Trigger matching and reply submission
    mattermost_client: Async REST client for the Mattermost API
    websocket_client: Realtime event stream client
    models: Users, teams, channels, posts and events

Entry Point:
    python -m pingbot.bot
"""

__version__ = "0.1.0"
