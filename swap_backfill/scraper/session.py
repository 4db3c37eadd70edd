"""
Swap history scraper session.

Owns the chain client and block store of one exchange, the pair scrapers
registered by callers, the trade channel, and the shutdown signaling
between ``close()`` and the backfill main loop.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from ..chain.client import ChainClient
from ..chain.errors import ChainClientError, DialError
from ..config import ConfigManager, get_config
from ..core.storage import BlockStore
from ..models import Pair, PairSummary
from ..utils.token_blacklist_manager import TokenBlacklistManager
from .channel import TradeChannel
from .errors import FatalStartupError, PairLookupError, ScraperClosedError, ScraperError
from .filters import build_reverse_set, pair_health_check
from .log_scanner import WindowedLogScanner
from .normalizer import SwapNormalizer
from .pair_registry import PairRegistry
from .scheduler import BackfillContext, BackfillScheduler, BackfillSummary

logger = logging.getLogger(__name__)


class PairScraper:
    """Handle returned by ``scrape_pair`` for one registered pair."""

    def __init__(self, parent: "SwapHistoryScraper", pair: PairSummary):
        self.parent = parent
        self._pair = pair
        self.closed = False

    @property
    def pair(self) -> PairSummary:
        return self._pair

    def error(self) -> Optional[Exception]:
        return self.parent.error()

    def close(self) -> None:
        self.closed = True


class SwapHistoryScraper:
    """
    Backfills the swap history of one Uniswap V2 style exchange.

    Pairs to scrape are registered with ``scrape_pair`` during the settle
    delay after ``start()``; the backfill then runs over every registered
    pair that a worker is assigned. Trades are consumed from ``trades()``.
    """

    def __init__(
        self,
        exchange: str,
        chain_client: ChainClient,
        block_store: BlockStore,
        config: Optional[ConfigManager] = None,
        registry: Optional[PairRegistry] = None,
    ):
        self.config = config or get_config()
        self.exchange = exchange
        self.chain_client = chain_client
        self.block_store = block_store

        settings = self.config.get_exchange_chain_config(exchange)
        scraper_config = self.config.scraper
        self.genesis_block = settings["genesis_block"]
        self.wait_seconds = settings["wait_seconds"]
        self.settle_delay = scraper_config.SETTLE_DELAY_SECONDS

        self.running = False
        self.closed = False
        self._error: Optional[Exception] = None
        self._shutdown = asyncio.Event()
        self._shutdown_done = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self.pair_scrapers: Dict[str, PairScraper] = {}
        self.summary: Optional[BackfillSummary] = None

        self.registry = registry or PairRegistry(
            chain_client,
            settings["factory_address"],
            exchange,
            discovery_concurrency=scraper_config.DISCOVERY_CONCURRENCY,
            reference_tokens=scraper_config.REFERENCE_TOKENS,
        )
        self.blacklist = TokenBlacklistManager.from_config(scraper_config)
        self.channel = TradeChannel(scraper_config.TRADE_CHANNEL_CAPACITY)
        self.normalizer = SwapNormalizer(self.registry, block_store, exchange)
        self.scanner = WindowedLogScanner.from_config(
            chain_client,
            self.config.exchanges.UNISWAP_V2_SWAP_EVENT,
            scraper_config,
            cancel_event=self._shutdown,
        )
        self.scheduler = BackfillScheduler(
            BackfillContext(
                registry=self.registry,
                scanner=self.scanner,
                normalizer=self.normalizer,
                channel=self.channel,
                blacklist=self.blacklist,
                is_registered=self.has_pair_scraper,
                cancel_event=self._shutdown,
            ),
            concurrency=scraper_config.BACKFILL_WORKERS,
            wait_seconds=self.wait_seconds,
            backfill_all_pairs=scraper_config.BACKFILL_ALL_PAIRS,
        )
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def start(self) -> None:
        """Launch the backfill main loop in the background."""
        if self.closed:
            raise ScraperClosedError(f"{self.exchange}: cannot start a closed scraper")
        if self._task is None:
            self._task = asyncio.create_task(self._main_loop())

    def _set_error(self, error: Exception) -> None:
        if self._error is None:
            self._error = error

    def error(self) -> Optional[Exception]:
        """The session error, if any."""
        return self._error

    def has_pair_scraper(self, foreign_name: str) -> bool:
        return foreign_name in self.pair_scrapers

    async def _sleep(self, seconds: float) -> bool:
        """Sleep unless shut down; returns True if shut down meanwhile."""
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False

    async def _main_loop(self) -> None:
        scraper_config = self.config.scraper
        try:
            self.normalizer.set_reverse_tokens(
                build_reverse_set(scraper_config.REVERSE_TOKENS, scraper_config.REVERSE_TOKENS_FILE or None)
            )

            # Let callers register their pairs before workers look them up
            if await self._sleep(self.settle_delay):
                return
            self.running = True

            num_pairs = await self.registry.get_num_pairs()
            self.logger.info(f"Found {num_pairs} pairs")
            self.logger.info(f"Found {len(self.pair_scrapers)} pair scrapers")

            if not self.pair_scrapers:
                self._set_error(ScraperError(f"{self.exchange}: no pairs to scrape provided"))
                self.logger.error(str(self._error))

            direct_pairs = await self._unassigned_pairs(num_pairs)

            head_block = await self.chain_client.get_latest_block()
            self.summary = await self.scheduler.run_backfill(
                self.genesis_block, head_block, num_pairs, direct_pairs=direct_pairs
            )
        except (PairLookupError, ChainClientError) as e:
            self.logger.error(f"{self.exchange}: backfill failed: {e}")
            self._set_error(e)
        except Exception as e:
            self.logger.exception(f"{self.exchange}: unexpected backfill error: {e}")
            self._set_error(e)
        finally:
            self.running = False
            self.channel.close()
            self._shutdown_done.set()

    async def _unassigned_pairs(self, num_pairs: int) -> List[Pair]:
        """
        Resolve registered pairs that no worker's pair index reaches.

        Without ``BACKFILL_ALL_PAIRS`` worker k only scans factory index k, so
        a registered pair further down the factory is looked up by its tokens
        and handed to the scheduler directly.
        """
        if self.scheduler.backfill_all_pairs or not self.pair_scrapers:
            return []

        assigned = set()
        for indices in self.scheduler.assign_indices(num_pairs):
            for index in indices:
                try:
                    assigned.add((await self.registry.resolve_pair_by_index(index)).foreign_name)
                except PairLookupError as e:
                    # The worker owning the index reports it again
                    self.logger.debug(f"Pair #{index} unresolved while planning: {e}")

        direct = []
        for name, pair_scraper in list(self.pair_scrapers.items()):
            if name in assigned:
                continue
            summary = pair_scraper.pair
            try:
                pair = await self.registry.find_pair(summary.base_token.address, summary.quote_token.address)
            except PairLookupError as e:
                self.logger.warning(f"Registered pair {name} not found on {self.exchange}: {e}")
                continue
            if pair.foreign_name not in assigned:
                self.logger.info(f"Scheduling {name} directly, it is outside the pair index assignment")
                direct.append(pair)
        return direct

    def scrape_pair(self, pair: PairSummary) -> PairScraper:
        """
        Register a pair for the backfill.

        Raises:
            ScraperClosedError: If the scraper is closed
            ScraperError: The session error, if one has been recorded
        """
        if self._error is not None:
            raise self._error
        if self.closed:
            raise ScraperClosedError(f"{self.exchange}: scrape_pair called on closed scraper")

        pair_scraper = PairScraper(self, pair)
        self.pair_scrapers[pair.foreign_name] = pair_scraper
        return pair_scraper

    def trades(self) -> TradeChannel:
        """Async iterator over emitted trades; ends when the backfill is over."""
        return self.channel

    async def list_available_pairs(self) -> List[PairSummary]:
        """Return every healthy, non-blacklisted pair of the exchange."""
        pairs = await self.registry.list_all_pairs()
        return [
            PairSummary.from_pair(pair, self.exchange)
            for pair in pairs
            if pair_health_check(pair, self.blacklist)
        ]

    async def close(self) -> Optional[Exception]:
        """
        Close the chain client and block store and stop the backfill.

        Returns:
            The session error, if any

        Raises:
            ScraperClosedError: If already closed
        """
        if self.closed:
            raise ScraperClosedError(f"{self.exchange}: already closed")
        self.closed = True

        self.chain_client.close()
        await self.block_store.close()
        self._shutdown.set()
        self.channel.close()

        if self._task is not None:
            await self._shutdown_done.wait()
        self.logger.info(f"{self.exchange} scraper closed")
        return self._error


async def create_scraper(
    exchange: str,
    config: Optional[ConfigManager] = None,
    start: bool = True,
) -> SwapHistoryScraper:
    """
    Dial the chain of ``exchange``, connect the block store and build a scraper.

    Raises:
        FatalStartupError: If the exchange is unknown or its node cannot be dialed
    """
    config = config or get_config()
    try:
        settings = config.get_exchange_chain_config(exchange)
    except ValueError as e:
        raise FatalStartupError(str(e)) from e

    logger.info(f"Init rest client for {settings['chain']} chain ({exchange})")
    try:
        chain_client = ChainClient.dial(settings["rpc_url"], settings["chain"], timeout=config.chains.RPC_TIMEOUT)
    except DialError as e:
        raise FatalStartupError(f"{exchange}: {e}") from e

    block_store = BlockStore.from_config(config.database, settings["chain"], chain_client)
    await block_store.connect()

    scraper = SwapHistoryScraper(exchange, chain_client, block_store, config=config)
    if start:
        scraper.start()
    return scraper
