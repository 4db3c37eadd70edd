"""
Historical swap backfill engine.

Usage:
    from swap_backfill.scraper import create_scraper

    scraper = await create_scraper("UniswapV2")
    for summary in await scraper.list_available_pairs():
        if summary.foreign_name == "WETH-USDT":
            scraper.scrape_pair(summary)

    async for trade in scraper.trades():
        ...
    error = await scraper.close()
"""

from .channel import TradeChannel
from .errors import (
    AmbiguousSwapError,
    FatalStartupError,
    NormalizationError,
    PairLookupError,
    ScanAbortedError,
    ScraperClosedError,
    ScraperError,
    UnknownPoolError,
)
from .filters import canonicalize, load_reverse_tokens, pair_health_check
from .log_scanner import WindowedLogScanner, WorkerCursor
from .normalizer import SwapNormalizer, get_swap_data, scale_amount
from .pair_registry import PairRegistry
from .scheduler import BackfillContext, BackfillScheduler, BackfillSummary, WorkerReport
from .session import PairScraper, SwapHistoryScraper, create_scraper

__all__ = [
    "TradeChannel",
    "AmbiguousSwapError",
    "FatalStartupError",
    "NormalizationError",
    "PairLookupError",
    "ScanAbortedError",
    "ScraperClosedError",
    "ScraperError",
    "UnknownPoolError",
    "canonicalize",
    "load_reverse_tokens",
    "pair_health_check",
    "WindowedLogScanner",
    "WorkerCursor",
    "SwapNormalizer",
    "get_swap_data",
    "scale_amount",
    "PairRegistry",
    "BackfillContext",
    "BackfillScheduler",
    "BackfillSummary",
    "WorkerReport",
    "PairScraper",
    "SwapHistoryScraper",
    "create_scraper",
]
