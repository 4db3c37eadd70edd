#!/usr/bin/env python3
"""
Command-line interface for the swap history backfill.

Usage:
    python -m swap_backfill.cli --exchange UniswapV2 --list-pairs
    python -m swap_backfill.cli --exchange UniswapV2 --pair WETH-USDC --pair WBTC-WETH
    python -m swap_backfill.cli --exchange PanCakeSwap --pair WBNB-BUSD --publish
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .config import get_config
from .scraper import FatalStartupError, SwapHistoryScraper, create_scraper
from .utils.nats import TradePublisher, dumps

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def list_pairs(scraper: SwapHistoryScraper) -> bool:
    """Print every healthy pair of the exchange."""
    pairs = await scraper.list_available_pairs()
    for pair in pairs:
        print(f"{pair.foreign_name}\t{pair.base_token.address}\t{pair.quote_token.address}")
    logger.info(f"📊 {len(pairs)} pairs available on {scraper.exchange}")
    return True


async def register_pairs(scraper: SwapHistoryScraper, names: List[str]) -> int:
    """Register the requested pairs; returns how many were found."""
    wanted = {name.upper() for name in names}
    found = 0
    for pair in await scraper.list_available_pairs():
        if pair.foreign_name.upper() in wanted:
            scraper.scrape_pair(pair)
            wanted.discard(pair.foreign_name.upper())
            found += 1
    for name in sorted(wanted):
        logger.warning(f"⚠️  Pair {name} not found on {scraper.exchange}")
    return found


async def print_trades(scraper: SwapHistoryScraper, limit: Optional[int]) -> int:
    count = 0
    async for trade in scraper.trades():
        print(dumps(trade.to_dict()))
        count += 1
        if limit is not None and count >= limit:
            break
    return count


async def run_backfill(args) -> bool:
    config = get_config()
    scraper = await create_scraper(args.exchange, config=config, start=False)
    try:
        if args.list_pairs:
            return await list_pairs(scraper)

        if not await register_pairs(scraper, args.pair):
            logger.error(f"❌ None of the requested pairs exist on {args.exchange}")
            return False

        logger.info(f"🚀 Starting backfill for {args.exchange}")
        scraper.start()
        if args.publish:
            async with TradePublisher.from_config(config.nats, args.exchange) as publisher:
                count = await publisher.arun(scraper.trades(), limit=args.limit)
        else:
            count = await print_trades(scraper, args.limit)
        logger.info(f"✅ Backfill emitted {count} trades")
    finally:
        error = await scraper.close()

    if error is not None:
        logger.error(f"❌ Backfill failed: {error}")
        return False
    return True


async def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Backfill the swap history of Uniswap V2 style exchanges",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show the pairs that would be accepted for UniswapV2
  python -m swap_backfill.cli --exchange UniswapV2 --list-pairs

  # Print the first 100 WETH-USDC trades as JSON lines
  python -m swap_backfill.cli --exchange UniswapV2 --pair WETH-USDC --limit 100

  # Publish PanCakeSwap trades to NATS
  python -m swap_backfill.cli --exchange PanCakeSwap --pair WBNB-BUSD --publish
        """,
    )

    parser.add_argument(
        "--exchange",
        required=True,
        choices=get_config().exchanges.supported_exchanges,
        help="Exchange to backfill",
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--pair",
        action="append",
        metavar="BASE-QUOTE",
        help="Pair to backfill, may be repeated",
    )
    group.add_argument(
        "--list-pairs", action="store_true", help="List available pairs and exit"
    )

    parser.add_argument(
        "--publish", action="store_true", help="Publish trades to NATS instead of stdout"
    )
    parser.add_argument("--limit", type=int, help="Stop after this many trades")

    args = parser.parse_args()

    if args.limit is not None and args.limit <= 0:
        parser.error("--limit must be positive")

    try:
        success = await run_backfill(args)
        sys.exit(0 if success else 1)

    except FatalStartupError as e:
        logger.error(f"💥 Startup failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("⏹️  Backfill interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.exception(f"💥 Unexpected error: {e}")
        sys.exit(1)


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
