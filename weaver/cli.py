"""Command-line interface for the portfolio weaver."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from .config import SUPPORTED_CHAINS, load_config
from .logging_setup import configure_logging
from .services.weaver import Weaver


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="weaver",
        description="Multi-chain EVM wallet inventory and USD valuation",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    wallet_parser = sub.add_parser("wallet", help="Native and tracked-token balances")
    wallet_parser.add_argument("chain", choices=SUPPORTED_CHAINS)
    wallet_parser.add_argument("address")

    project_parser = sub.add_parser("project", help="Balances held in one project")
    project_parser.add_argument("chain", choices=SUPPORTED_CHAINS)
    project_parser.add_argument("address")
    project_parser.add_argument("name", help="Project name, see 'list'")

    projects_parser = sub.add_parser("projects", help="Balances across every project on a chain")
    projects_parser.add_argument("chain", choices=SUPPORTED_CHAINS)
    projects_parser.add_argument("address")

    list_parser = sub.add_parser("list", help="Registered project names")
    list_parser.add_argument("chain", choices=SUPPORTED_CHAINS)

    price_parser = sub.add_parser("price", help="Current USD price of one token")
    price_parser.add_argument("chain", choices=SUPPORTED_CHAINS)
    price_parser.add_argument("address")
    price_parser.add_argument(
        "--decimals",
        type=int,
        default=18,
        help="Token decimals, used for pool share pricing (default: 18)",
    )

    return parser


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    weaver = Weaver(config)

    if args.command == "wallet":
        tokens = await weaver.get_wallet_balance(args.chain, args.address)
        _print_json([t.to_dict() for t in tokens])
    elif args.command == "project":
        tokens = await weaver.get_project_balance(args.chain, args.address, args.name)
        _print_json([t.to_dict() for t in tokens])
    elif args.command == "projects":
        tokens = await weaver.get_all_project_balances(args.chain, args.address)
        _print_json([t.to_dict() for t in tokens])
    elif args.command == "list":
        _print_json(weaver.get_projects(args.chain))
    elif args.command == "price":
        price = await weaver.get_token_price(args.chain, args.address, args.decimals)
        _print_json({"chain": args.chain, "address": args.address, "price": price})
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    address = getattr(args, "address", None)
    if address is not None and not Weaver.is_address(address):
        parser.error(f"invalid address: {address}")

    asyncio.run(_run(args))
