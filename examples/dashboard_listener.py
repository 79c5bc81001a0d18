"""Example: feed both realtime channels into in-memory inboxes.

Run with WS_BASE_URL / API_BASE_URL pointing at the dashboard backend and
WS_TOKEN holding an access token.
"""

import asyncio
import os

from realtime_ws_client import ChannelKind, ClientConfig, HttpTokenRefresher, RealtimeClient, get_settings
from realtime_ws_client.telemetry import setup_logging


async def main():
    settings = get_settings()
    setup_logging(settings.log_level, "console")

    broadcast_messages = []
    user_messages = []

    async with HttpTokenRefresher(settings.api_base_url) as refresher:
        async with RealtimeClient(
            os.environ["WS_TOKEN"],
            refresher,
            config=ClientConfig.from_settings(settings),
            on_refresh_failed=lambda exc: print(f"Session expired, log in again: {exc}"),
        ) as client:
            client.connect_broadcast(broadcast_messages.append)
            client.connect_user(user_messages.append)

            for _ in range(12):
                await asyncio.sleep(5)
                print(
                    f"broadcast={client.get_status(ChannelKind.BROADCAST).value} ({len(broadcast_messages)} msgs) "
                    f"user={client.get_status(ChannelKind.USER).value} ({len(user_messages)} msgs)"
                )


if __name__ == "__main__":
    asyncio.run(main())
