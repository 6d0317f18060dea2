#!/usr/bin/env python
"""Launch a token, find it in the listing, buy a little and sell a little back.

Needs PRIVATE_KEY (or MOLTMOON_PRIVATE_KEY) in the environment or .env.
"""
from __future__ import annotations

import argparse
import asyncio
import logging

from moltmoon import LaunchParams, MoltmoonError, MoltmoonSDK
from moltmoon.config import get_settings

logger = logging.getLogger(__name__)


async def run(args: argparse.Namespace) -> None:
    settings = get_settings()
    if not settings.private_key:
        raise SystemExit("Please set PRIVATE_KEY in .env")

    async with MoltmoonSDK(settings) as sdk:
        logger.info("--- 1. Launching token ---")
        result = await sdk.launch_token(
            LaunchParams(
                name=args.name,
                symbol=args.symbol,
                description="Launched via Moltmoon SDK",
                seed_amount=args.seed,
                image=args.image,
            )
        )
        logger.info("Token launched! Tx: %s", result.hash)

        # The indexer lags the chain by a few blocks.
        await asyncio.sleep(args.index_delay)

        tokens = await sdk.get_tokens()
        mine = next((t for t in tokens if t.name == args.name), None)
        if mine is None:
            raise SystemExit("Token not found in list after launch. Indexer might be slow.")
        logger.info("Found token %s (market %s)", mine.token, mine.market)

        logger.info("--- 2. Buying token ---")
        logger.info("Buy tx: %s", await sdk.buy(mine.market, args.buy_usdc))

        logger.info("--- 3. Selling token ---")
        logger.info("Sell tx: %s", await sdk.sell(mine.market, args.sell_tokens, mine.token))


def main() -> None:
    parser = argparse.ArgumentParser(description="Moltmoon SDK round trip")
    parser.add_argument("--name", default="SDK Agent")
    parser.add_argument("--symbol", default="SDK")
    parser.add_argument("--seed", default="20")
    parser.add_argument("--image", default=None, help="Optional logo path")
    parser.add_argument("--buy-usdc", default="5")
    parser.add_argument("--sell-tokens", default="1")
    parser.add_argument("--index-delay", type=float, default=5.0)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        asyncio.run(run(args))
    except MoltmoonError as exc:
        logger.error("SDK Error: %s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
