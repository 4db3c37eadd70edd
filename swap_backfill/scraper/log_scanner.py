"""
Windowed Swap log scanning.

A block range is walked in contiguous inclusive windows. When the node
rejects a window as too large the window is halved and retried from the
same start; other failures are retried after a capped exponential backoff.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from ..chain.errors import LogQueryTooLargeError, TransientChainError
from ..models import RawSwapEvent
from .errors import ScanAbortedError

logger = logging.getLogger(__name__)


@dataclass
class WorkerCursor:
    """Scanning position of one worker over ``[window_start, target_end]``."""

    window_start: int
    window_end: int
    target_end: int
    width: int

    @classmethod
    def create(cls, start_block: int, end_block: int, width: int) -> "WorkerCursor":
        if width <= 0:
            raise ValueError("window width must be positive")
        return cls(
            window_start=start_block,
            window_end=min(start_block + width - 1, end_block),
            target_end=end_block,
            width=width,
        )

    @property
    def done(self) -> bool:
        return self.window_start > self.target_end

    def shrink(self) -> bool:
        """Halve the current window. Returns False for a single-block window."""
        if self.window_end <= self.window_start:
            return False
        self.window_end = self.window_start + (self.window_end - self.window_start) // 2
        return True

    def advance(self) -> None:
        """Move to the next full-width window after the current one."""
        self.window_start = self.window_end + 1
        self.window_end = min(self.window_start + self.width - 1, self.target_end)


class WindowedLogScanner:
    """
    Iterates the Swap events of one pool over a block range.

    Events are yielded in block order, one window at a time. The optional
    ``cancel_event`` is checked before every window and interrupts backoff
    sleeps; a cancelled scan simply ends.
    """

    def __init__(
        self,
        chain_client,
        event_topic: str,
        window_blocks: int = 1000,
        max_retries: int = 10,
        retry_delay: float = 5.0,
        max_retry_delay: float = 60.0,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.chain_client = chain_client
        self.event_topic = event_topic
        self.window_blocks = window_blocks
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.max_retry_delay = max_retry_delay
        self.cancel_event = cancel_event
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    def from_config(cls, chain_client, event_topic: str, scraper_config, cancel_event=None):
        return cls(
            chain_client,
            event_topic,
            window_blocks=scraper_config.WINDOW_BLOCKS,
            max_retries=scraper_config.MAX_RETRY_ATTEMPTS,
            retry_delay=scraper_config.RETRY_DELAY_SECONDS,
            max_retry_delay=scraper_config.MAX_RETRY_DELAY_SECONDS,
            cancel_event=cancel_event,
        )

    def get_retry_delay(self, attempt: int) -> float:
        return min(self.retry_delay * (2 ** attempt), self.max_retry_delay)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    async def _backoff(self, delay: float) -> bool:
        """Sleep for ``delay`` seconds; returns True if cancelled meanwhile."""
        if self.cancel_event is None:
            await asyncio.sleep(delay)
            return False
        try:
            await asyncio.wait_for(self.cancel_event.wait(), timeout=delay)
            return True
        except asyncio.TimeoutError:
            return False

    async def scan(self, pool_address: str, start_block: int, end_block: int) -> AsyncIterator[RawSwapEvent]:
        """
        Yield the Swap events of ``pool_address`` in ``[start_block, end_block]``.

        Raises:
            ScanAbortedError: If a single-block window is still too large or
                a window keeps failing after ``max_retries`` retries
        """
        if end_block < start_block:
            return

        cursor = WorkerCursor.create(start_block, end_block, self.window_blocks)
        failures = 0

        while not cursor.done:
            if self.cancelled:
                self.logger.info(f"Scan of {pool_address} cancelled at block {cursor.window_start}")
                return

            try:
                logs = await self.chain_client.open_log_cursor(
                    pool_address, self.event_topic, cursor.window_start, cursor.window_end
                )
            except LogQueryTooLargeError as e:
                if not cursor.shrink():
                    raise ScanAbortedError(
                        f"Block {cursor.window_start} of {pool_address} exceeds node limits: {e}",
                        cursor.window_start,
                        cursor.window_end,
                    ) from e
                self.logger.info(
                    f"Too many results for {pool_address}, reduced window to "
                    f"[{cursor.window_start}, {cursor.window_end}]"
                )
                continue
            except TransientChainError as e:
                if failures >= self.max_retries:
                    raise ScanAbortedError(
                        f"Giving up on {pool_address} [{cursor.window_start}, {cursor.window_end}] "
                        f"after {failures} retries: {e}",
                        cursor.window_start,
                        cursor.window_end,
                    ) from e
                delay = self.get_retry_delay(failures)
                failures += 1
                self.logger.error(
                    f"Get swaps for {pool_address} [{cursor.window_start}, {cursor.window_end}] "
                    f"failed: {e}; retry {failures}/{self.max_retries} in {delay}s"
                )
                if await self._backoff(delay):
                    return
                continue

            failures = 0
            self.logger.debug(
                f"Got {len(logs)} swaps for {pool_address} in [{cursor.window_start}, {cursor.window_end}]"
            )
            for event in logs:
                yield event
            cursor.advance()
