#!/usr/bin/env python3
"""
Multicast Client
================
Batch read-only contract calls into one round trip

Usage:
    python main.py balances --chain 56 0xabc... 0xdef...
    python main.py tokens --chain 56 --token 0x55d3... 0xabc...
    python main.py state --chain 1
"""
import argparse
import asyncio
import sys

from config.chains import ChainRegistry, get_chain
from config.settings import LOG_LEVEL
from core.errors import MulticastError
from core.network.multicast import MulticastInstances
from ui.terminal import balances_table, state_table
from utils.logger import setup_logging, get_logger, console
from utils.rate_limiter import MultiRateLimiter
from utils.rpc_manager import RPCManager

logger = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Multicast client")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--deployments", default=None, help="Deployment registry JSON file")
    sub = parser.add_subparsers(dest="command", required=True)

    balances = sub.add_parser("balances", help="Native balances of many addresses")
    balances.add_argument("--chain", type=int, required=True)
    balances.add_argument("addresses", nargs="+")

    tokens = sub.add_parser("tokens", help="ERC-20/ERC-721 balances of many owners")
    tokens.add_argument("--chain", type=int, required=True)
    tokens.add_argument("--token", required=True)
    tokens.add_argument("owners", nargs="+")

    state = sub.add_parser("state", help="Block number, hash, difficulty, gas limit, timestamp")
    state.add_argument("--chain", type=int, required=True)
    return parser.parse_args(argv)


async def run(args: argparse.Namespace):
    registry = ChainRegistry.load(args.deployments)
    instances = MulticastInstances(registry, MultiRateLimiter.for_chains(registry.deployments))
    rpc = RPCManager()
    chain = get_chain(args.chain)

    try:
        web3 = await rpc.get_web3(args.chain)
        core = await instances.async_get_instance(web3)

        if args.command == "balances":
            console.print(balances_table(await core.eth(args.addresses), chain))
        elif args.command == "tokens":
            balances = await core.token_balances(args.token, args.owners)
            for owner, balance in balances.items():
                console.print(f"{owner}  {'[red]failed[/red]' if balance is None else balance}")
        elif args.command == "state":
            console.print(state_table(await core.state(), chain))
    finally:
        await rpc.close()


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level or LOG_LEVEL)

    try:
        asyncio.run(run(args))
    except MulticastError as e:
        logger.error(f"[red]{e.stage} error: {e}[/red]")
        return 1
    except (OSError, ValueError) as e:
        # unreadable or non-JSON deployment registry
        logger.error(f"[red]config error: {e}[/red]")
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
