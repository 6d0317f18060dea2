#!/usr/bin/env python
"""moltlaunch: command line front end for the Moltmoon launchpad."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional, Sequence

from moltmoon import __version__
from moltmoon.config import Settings
from moltmoon.errors import MoltmoonError
from moltmoon.models import LaunchParams, Socials
from moltmoon.sdk import MoltmoonSDK

logger = logging.getLogger(__name__)

_EXPLORERS = {
    "base": "https://basescan.org",
    "baseSepolia": "https://sepolia.basescan.org",
}


class CLIError(Exception):
    pass


def build_settings(args: argparse.Namespace, *, require_signer: bool = False) -> Settings:
    overrides: dict[str, Any] = {}
    if args.api_url:
        overrides["api_url"] = args.api_url
    if args.network:
        overrides["network"] = args.network
    if args.private_key:
        overrides["private_key"] = args.private_key
    settings = Settings(**overrides)
    if not args.verbose:
        logging.getLogger().setLevel(settings.log_level.upper())

    if require_signer and not settings.private_key:
        raise CLIError("Missing private key. Set MOLTMOON_PRIVATE_KEY (or PRIVATE_KEY) or pass --private-key.")
    return settings


def _emit(args: argparse.Namespace, payload: dict[str, Any], human: str) -> None:
    if args.json:
        print(json.dumps({"success": True, **payload}))
    else:
        print(human)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def cmd_launch(args: argparse.Namespace) -> None:
    settings = build_settings(args, require_signer=not args.dry_run)
    params = LaunchParams(
        name=args.name,
        symbol=args.symbol,
        description=args.description,
        seed_amount=args.seed,
        image=args.image,
        socials=Socials(
            website=args.website,
            twitter=args.twitter,
            telegram=args.telegram,
            discord=args.discord,
        ),
    )
    async with MoltmoonSDK(settings) as sdk:
        if args.dry_run:
            prep = await sdk.prepare_launch_token(params)
            payload = prep.model_dump(mode="json", by_alias=True)
            _emit(args, {"dryRun": True, **payload}, json.dumps(payload, indent=2))
            return

        result = await sdk.launch_token(params)
        explorer = _EXPLORERS[settings.resolved_network]
        _emit(
            args,
            result.model_dump(mode="json", by_alias=True),
            f"Success!\nHash: {result.hash}\nExplorer: {explorer}/tx/{result.hash}",
        )


async def cmd_tokens(args: argparse.Namespace) -> None:
    async with MoltmoonSDK(build_settings(args)) as sdk:
        tokens = await sdk.get_tokens()
    rows = [t.model_dump(mode="json", by_alias=True) for t in tokens]
    human = "\n".join(f"{t.symbol:<12} {t.name:<32} token={t.token} market={t.market}" for t in tokens)
    _emit(args, {"count": len(tokens), "tokens": rows}, human or "No tokens.")


async def cmd_buy(args: argparse.Namespace) -> None:
    async with MoltmoonSDK(build_settings(args, require_signer=True)) as sdk:
        tx_hash = await sdk.buy(args.market, args.usdc, args.slippage)
    _emit(args, {"hash": tx_hash}, f"Buy tx: {tx_hash}")


async def cmd_sell(args: argparse.Namespace) -> None:
    async with MoltmoonSDK(build_settings(args, require_signer=True)) as sdk:
        tx_hash = await sdk.sell(args.market, args.amount, args.token, args.slippage)
    _emit(args, {"hash": tx_hash}, f"Sell tx: {tx_hash}")


async def cmd_quote_buy(args: argparse.Namespace) -> None:
    async with MoltmoonSDK(build_settings(args)) as sdk:
        quote = await sdk.get_quote_buy(args.market, args.usdc)
    _emit(args, {"quote": quote.model_dump(by_alias=True)}, f"Out: {quote.amount_out} | Fee: {quote.fee_paid}")


async def cmd_quote_sell(args: argparse.Namespace) -> None:
    async with MoltmoonSDK(build_settings(args)) as sdk:
        quote = await sdk.get_quote_sell(args.market, args.tokens)
    _emit(args, {"quote": quote.model_dump(by_alias=True)}, f"Out: {quote.amount_out} | Fee: {quote.fee_paid}")


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="moltlaunch", description="Moltmoon Launchpad CLI")
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--api-url", help="API base URL (default: https://api.moltmoon.xyz)")
    parser.add_argument("--network", choices=["base", "baseSepolia"])
    parser.add_argument("--private-key", help="Signer private key (0x...)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")

    sub = parser.add_subparsers(dest="command", required=True)

    def add_command(name: str, handler, help_text: str) -> argparse.ArgumentParser:
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("--json", action="store_true", help="Output result as JSON")
        cmd.set_defaults(handler=handler)
        return cmd

    launch = add_command("launch", cmd_launch, "Launch a new AI agent token")
    launch.add_argument("-n", "--name", required=True)
    launch.add_argument("-s", "--symbol", required=True)
    launch.add_argument("-d", "--description", required=True)
    launch.add_argument("-i", "--image", help="Logo: local PNG/JPEG path or data URL")
    launch.add_argument("-w", "--website")
    launch.add_argument("--twitter")
    launch.add_argument("--telegram")
    launch.add_argument("--discord")
    launch.add_argument("--seed", default="100", help="Seed liquidity in USDC (min 20)")
    launch.add_argument("--dry-run", action="store_true", help="Validate and prepare intents without broadcasting")

    add_command("tokens", cmd_tokens, "List tokens")

    buy = add_command("buy", cmd_buy, "Buy token from a market")
    buy.add_argument("--market", required=True)
    buy.add_argument("--usdc", required=True, help="USDC amount to spend")
    buy.add_argument("--slippage", type=int, default=500, help="Slippage in bps")

    sell = add_command("sell", cmd_sell, "Sell token into a market")
    sell.add_argument("--market", required=True)
    sell.add_argument("--token", required=True)
    sell.add_argument("--amount", required=True, help="Token amount to sell")
    sell.add_argument("--slippage", type=int, default=500, help="Slippage in bps")

    quote_buy = add_command("quote-buy", cmd_quote_buy, "Get buy quote")
    quote_buy.add_argument("--market", required=True)
    quote_buy.add_argument("--usdc", required=True)

    quote_sell = add_command("quote-sell", cmd_quote_sell, "Get sell quote")
    quote_sell.add_argument("--market", required=True)
    quote_sell.add_argument("--tokens", required=True)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(args.handler(args))
    except (CLIError, MoltmoonError) as exc:
        _report_failure(args, exc)
        return 1
    except Exception as exc:  # pylint: disable=broad-except
        logger.debug("Command failed", exc_info=True)
        _report_failure(args, exc)
        return 1
    return 0


def _report_failure(args: argparse.Namespace, exc: Exception) -> None:
    if args.json:
        print(json.dumps({"success": False, "error": str(exc)}), file=sys.stderr)
    else:
        print(f"Error: {exc}", file=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
