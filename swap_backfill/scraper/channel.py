"""
Bounded trade channel shared by all backfill workers.

``emit`` waits while the channel is full, so a slow consumer throttles every
worker alike. Closing the channel ends iteration once the buffered trades
have been consumed and fails pending and future emits.
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

from ..models import NormalizedTrade
from .errors import ScraperClosedError

logger = logging.getLogger(__name__)


class TradeChannel:
    """asyncio.Queue based trade stream with an explicit end-of-stream."""

    def __init__(self, capacity: int = 1):
        if capacity <= 0:
            raise ValueError("channel capacity must be positive")
        self.capacity = capacity
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
        self._closed = asyncio.Event()
        self.emitted = 0

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def _race(self, operation) -> Optional[asyncio.Task]:
        """Run ``operation`` until it finishes or the channel closes."""
        task = asyncio.ensure_future(operation)
        closer = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({task, closer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closer.cancel()
            if not task.done():
                task.cancel()
        return task if task.done() and not task.cancelled() else None

    async def emit(self, trade: NormalizedTrade) -> None:
        """
        Hand a trade to the consumer, waiting while the channel is full.

        Raises:
            ScraperClosedError: If the channel is or gets closed
        """
        if self.closed:
            raise ScraperClosedError("trade channel is closed")
        try:
            self._queue.put_nowait(trade)
        except asyncio.QueueFull:
            if await self._race(self._queue.put(trade)) is None:
                raise ScraperClosedError("trade channel closed while emitting")
        self.emitted += 1

    async def get(self) -> Optional[NormalizedTrade]:
        """Return the next trade, or None once the channel is closed and drained."""
        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self.closed:
                return None
            task = await self._race(self._queue.get())
            if task is not None:
                return task.result()

    def close(self) -> None:
        if not self.closed:
            self._closed.set()
            logger.debug(f"Trade channel closed after {self.emitted} trades")

    def __aiter__(self) -> AsyncIterator[NormalizedTrade]:
        return self

    async def __anext__(self) -> NormalizedTrade:
        trade = await self.get()
        if trade is None:
            raise StopAsyncIteration
        return trade
