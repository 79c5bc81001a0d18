import asyncio
from typing import Optional

import click
import orjson

from . import __version__
from .auth.token_refresh import HttpTokenRefresher
from .client import RealtimeClient
from .config import ClientConfig, get_settings
from .streaming.state import ChannelKind
from .telemetry.logger import setup_logging


def get_version():
    return __version__


def format_message(channel: ChannelKind, message) -> str:
    if isinstance(message, bytes):
        message = message.decode("utf-8", errors="replace")
    return orjson.dumps({"channel": channel.value, "message": message}).decode()


async def listen_channels(channels: list[ChannelKind], token: str, count: Optional[int] = None) -> None:
    settings = get_settings()
    done = asyncio.Event()
    received = 0

    def printer(channel: ChannelKind):
        def handle(message):
            nonlocal received
            click.echo(format_message(channel, message))
            received += 1
            if count is not None and received >= count:
                done.set()

        return handle

    async with HttpTokenRefresher(settings.api_base_url, timeout=settings.token_refresh_timeout) as refresher:
        async with RealtimeClient(
            token,
            refresher,
            config=ClientConfig.from_settings(settings),
            on_refresh_failed=lambda exc: click.echo(f"Session expired: {exc}", err=True),
        ) as client:
            if ChannelKind.BROADCAST in channels:
                client.connect_broadcast(printer(ChannelKind.BROADCAST))
            if ChannelKind.USER in channels:
                client.connect_user(printer(ChannelKind.USER))
            await done.wait()


def run_listener(channels: list[ChannelKind], token: str, count: Optional[int] = None):
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    try:
        asyncio.run(listen_channels(channels, token, count))
    except KeyboardInterrupt:
        pass


@click.group()
def cli():
    pass


@cli.command()
@click.option("--format", default="text", type=click.Choice(["text", "json"]))
def version(format):
    if format == "json":
        click.echo(orjson.dumps({"version": get_version()}).decode())
    else:
        click.echo(f"v{get_version()}")


@cli.command()
@click.option("--channel", default="both", type=click.Choice(["broadcast", "user", "both"]))
@click.option("--token", envvar="WS_TOKEN", default=None, help="Access token for the user channel")
@click.option("--count", default=None, type=int, help="Exit after this many messages")
def listen(channel, token, count):
    if channel == "both":
        channels = [ChannelKind.BROADCAST, ChannelKind.USER]
    else:
        channels = [ChannelKind(channel)]

    if ChannelKind.USER in channels and not token:
        raise click.UsageError("--token is required for the user channel")

    run_listener(channels, token or "", count)


if __name__ == "__main__":
    cli()
