import argparse
import asyncio
import logging

import uvicorn

from core.container import create_container
from core.environment.config import Settings
from subscription.client import TatumSubscriptionClient
from watcher.monitor import ChainMonitor
from watcher.registry import AddressRegistry


async def run_monitor() -> None:
    container = create_container()
    try:
        monitor = await container.get(ChainMonitor, component="watcher")
        await monitor.run()
    finally:
        await container.close()


async def run_subscribe(addresses: list[str] | None) -> dict[str, str]:
    container = create_container()
    try:
        client = await container.get(TatumSubscriptionClient, component="subscription")
        if not addresses:
            registry = await container.get(AddressRegistry, component="watcher")
            addresses = list(registry.addresses)
        return await client.subscribe_addresses(addresses)
    finally:
        await container.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chain-watcher",
        description="Watch an EVM chain and address notifications for watched addresses"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("serve", help="run the webhook API")
    commands.add_parser("monitor", help="watch new blocks in the foreground")

    subscribe = commands.add_parser("subscribe", help="create address notification subscriptions")
    subscribe.add_argument(
        "--address",
        action="append",
        dest="addresses",
        help="address to subscribe (repeatable, defaults to all watched addresses)"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``chain-watcher`` command."""
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        settings = Settings()
        uvicorn.run("main:app", host=settings.host, port=settings.port)
    elif args.command == "monitor":
        try:
            asyncio.run(run_monitor())
        except KeyboardInterrupt:
            logging.getLogger("chain_watcher").info("Stopped")
    elif args.command == "subscribe":
        subscriptions = asyncio.run(run_subscribe(args.addresses))
        for address, subscription_id in subscriptions.items():
            print(f"{address}: {subscription_id}")


if __name__ == "__main__":
    main()
