#!/usr/bin/env python3
"""
Docker health check script for the Mattermost Ping Bot.

This script verifies the configured Mattermost server answers its
ping endpoint.

Exit codes:
    0 - Healthy
    1 - Unhealthy

Usage:
    python scripts/healthcheck.py
"""

import asyncio
import sys
from typing import Optional

import httpx


async def check_health(transport: Optional[httpx.AsyncBaseTransport] = None) -> bool:
    """
    Ping the configured server.

    Args:
        transport: Optional httpx transport, used to fake the server in tests.

    Returns:
        True if the server answered, False otherwise.
    """
    from config import settings
    from pingbot.mattermost_client import MattermostClient, MattermostError

    client = MattermostClient(
        settings.mattermost_url,
        timeout=settings.request_timeout,
        transport=transport,
    )
    try:
        props = await client.get_ping()
    except (MattermostError, httpx.HTTPError) as e:
        print(f"UNHEALTHY: Server ping failed - {e}")
        return False
    finally:
        await client.close()

    print(f"HEALTHY: Server version {props.get('version', 'unknown')}")
    return True


if __name__ == "__main__":
    healthy = asyncio.run(check_health())
    sys.exit(0 if healthy else 1)
