"""
Concurrent backfill scheduling.

A fixed pool of workers is launched with a staggered start. Each worker
resolves its assigned pair indices, filters them, and drives
scan -> normalize -> emit over the whole block range for each pair.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Union

from ..models import Pair
from ..utils.token_blacklist_manager import TokenBlacklistManager
from .channel import TradeChannel
from .errors import NormalizationError, PairLookupError, ScanAbortedError, ScraperClosedError
from .filters import rejection_reason
from .log_scanner import WindowedLogScanner
from .normalizer import SwapNormalizer
from .pair_registry import PairRegistry

logger = logging.getLogger(__name__)


@dataclass
class BackfillContext:
    """Everything a backfill worker needs, owned by the scraper session."""

    registry: PairRegistry
    scanner: WindowedLogScanner
    normalizer: SwapNormalizer
    channel: TradeChannel
    blacklist: Optional[TokenBlacklistManager] = None
    is_registered: Callable[[str], bool] = lambda foreign_name: True
    cancel_event: Optional[asyncio.Event] = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


@dataclass
class WorkerReport:
    """Outcome of one backfill worker."""

    worker_id: int
    pair_indices: List[int] = field(default_factory=list)
    direct_pairs: List[str] = field(default_factory=list)
    pairs: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    trades_emitted: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class BackfillSummary:
    """Outcome of a backfill run."""

    from_block: int
    to_block: int
    workers: List[WorkerReport] = field(default_factory=list)
    cancelled: bool = False

    @property
    def trades_emitted(self) -> int:
        return sum(w.trades_emitted for w in self.workers)

    @property
    def pairs(self) -> List[str]:
        return [p for w in self.workers for p in w.pairs]

    @property
    def errors(self) -> List[str]:
        return [e for w in self.workers for e in w.errors]


class BackfillScheduler:
    """Runs the per-pair backfill across a fixed pool of workers."""

    def __init__(
        self,
        context: BackfillContext,
        concurrency: int = 5,
        wait_seconds: float = 0.5,
        backfill_all_pairs: bool = False,
    ):
        self.context = context
        self.concurrency = concurrency
        self.wait_seconds = wait_seconds
        self.backfill_all_pairs = backfill_all_pairs
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def assign_indices(self, num_pairs: int, concurrency: Optional[int] = None) -> List[List[int]]:
        """
        Assign factory pair indices to workers.

        By default worker k handles pair index k only. With
        ``backfill_all_pairs`` worker k handles k, k+N, k+2N, ... so the
        workers partition the whole pair universe.
        """
        workers = concurrency or self.concurrency
        if self.backfill_all_pairs:
            return [list(range(k, num_pairs, workers)) for k in range(workers)]
        return [[k] if k < num_pairs else [] for k in range(workers)]

    async def run_backfill(
        self,
        from_block: int,
        to_block: int,
        num_pairs: int,
        concurrency: Optional[int] = None,
        direct_pairs: Sequence[Pair] = (),
    ) -> BackfillSummary:
        """
        Backfill ``[from_block, to_block]`` and return once every worker is done.

        ``direct_pairs`` are already resolved pairs that the index assignment
        does not reach; they are dealt round-robin to the workers and scanned
        after each worker's indexed pairs.
        """
        assignments = self.assign_indices(num_pairs, concurrency)
        workers = len(assignments)
        work = [list(indices) + list(direct_pairs[k::workers]) for k, indices in enumerate(assignments)]
        summary = BackfillSummary(from_block=from_block, to_block=to_block)
        self.logger.info(
            f"Starting backfill of blocks [{from_block}, {to_block}] "
            f"with {workers} workers over {num_pairs} pairs"
            + (f" and {len(direct_pairs)} directly scheduled pairs" if direct_pairs else "")
        )

        tasks = []
        for worker_id, items in enumerate(work):
            if await self._stagger():
                summary.cancelled = True
                break
            tasks.append(asyncio.create_task(self._run_worker(worker_id, items, from_block, to_block)))

        summary.workers = list(await asyncio.gather(*tasks))
        summary.cancelled = summary.cancelled or self.context.cancelled
        self.logger.info(
            f"Backfill finished: {summary.trades_emitted} trades from {len(summary.pairs)} pairs, "
            f"{len(summary.errors)} errors"
        )
        return summary

    async def _stagger(self) -> bool:
        """Wait between worker launches; returns True if cancelled meanwhile."""
        cancel_event = self.context.cancel_event
        if cancel_event is None:
            await asyncio.sleep(self.wait_seconds)
            return False
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.wait_seconds)
            return True
        except asyncio.TimeoutError:
            return False

    async def _run_worker(
        self, worker_id: int, items: List[Union[int, Pair]], from_block: int, to_block: int
    ) -> WorkerReport:
        report = WorkerReport(
            worker_id=worker_id,
            pair_indices=[i for i in items if isinstance(i, int)],
            direct_pairs=[p.foreign_name for p in items if isinstance(p, Pair)],
        )
        try:
            for item in items:
                if self.context.cancelled:
                    break
                pair = await self._select_pair(worker_id, item, report)
                if pair is None:
                    continue

                self.logger.info(f"{worker_id}: found pair scraper for {pair.foreign_name} with address {pair.address}")
                try:
                    report.trades_emitted += await self.backfill_pair(pair, from_block, to_block)
                    report.pairs.append(pair.foreign_name)
                except ScanAbortedError as e:
                    self.logger.error(f"{worker_id}: backfill of {pair.foreign_name} aborted: {e}")
                    report.errors.append(f"{pair.foreign_name}: {e}")
        except ScraperClosedError:
            self.logger.info(f"{worker_id}: trade channel closed, stopping")
        except Exception as e:
            self.logger.exception(f"{worker_id}: worker failed: {e}")
            report.errors.append(str(e))
        return report

    async def _select_pair(self, worker_id: int, item: Union[int, Pair], report: WorkerReport) -> Optional[Pair]:
        if isinstance(item, Pair):
            pair = item
        else:
            try:
                pair = await self.context.registry.resolve_pair_by_index(item)
            except PairLookupError as e:
                self.logger.error(f"{worker_id}: error fetching pair #{item}: {e}")
                report.skipped.append(f"#{item}")
                return None

        reason = rejection_reason(pair, self.context.blacklist)
        if reason is not None:
            self.logger.info(f"{worker_id}: skip pair {pair.foreign_name}: {reason}")
            report.skipped.append(pair.foreign_name)
            return None

        if not self.context.is_registered(pair.foreign_name):
            self.logger.info(f"{worker_id}: skipping {pair.foreign_name}, no pair scraper registered")
            report.skipped.append(pair.foreign_name)
            return None
        return pair

    async def backfill_pair(self, pair: Pair, from_block: int, to_block: int) -> int:
        """
        Scan, normalize and emit all trades of one pair.

        Returns:
            Number of trades emitted

        Raises:
            ScanAbortedError: If the scan gives up on a window
            ScraperClosedError: If the trade channel is closed
        """
        emitted = 0
        async for event in self.context.scanner.scan(pair.address, from_block, to_block):
            try:
                trade = await self.context.normalizer.normalize(event)
            except NormalizationError as e:
                self.logger.error(f"Error normalizing swap {event.tx_hash} of {pair.foreign_name}: {e}")
                continue
            if trade is None:
                continue

            self.logger.debug(
                f"Got trade at time {trade.time} - symbol: {trade.symbol}, pair: {trade.pair}, "
                f"price: {trade.price}, volume: {trade.volume}"
            )
            await self.context.channel.emit(trade)
            emitted += 1
        return emitted
