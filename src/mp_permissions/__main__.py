"""CLI – ``python -m mp_permissions relay|init-db``."""
from __future__ import annotations

import argparse
import asyncio
import signal

from mp_permissions.bootstrap import Container
from mp_permissions.config import DotenvSettingsLoader, PermissionsSettings
from mp_permissions.observability.logging import configure_logging, get_logger

logger = get_logger(__name__)


async def _init_db(settings: PermissionsSettings) -> None:
    container = Container.from_settings(settings)
    try:
        await container.init_db()
    finally:
        await container.aclose()


async def _relay(settings: PermissionsSettings) -> None:
    container = Container.from_settings(settings)
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)
    try:
        await container.start_sinks()
        await container.relay.run_forever(stop)
    finally:
        await container.aclose()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="mp_permissions", description="Permissions outbox tooling")
    parser.add_argument("--env-file", default=".env", help="dotenv file read before the environment")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("relay", help="deliver outbox messages until SIGINT/SIGTERM")
    sub.add_parser("init-db", help="create tables and seed permission types")
    args = parser.parse_args(argv)

    settings = DotenvSettingsLoader(args.env_file).load(PermissionsSettings)
    configure_logging(settings.log_level, json=settings.log_json)
    logger.info("cli.starting", command=args.command)
    if args.command == "relay":
        asyncio.run(_relay(settings))
    else:
        asyncio.run(_init_db(settings))


if __name__ == "__main__":
    main()
