"""
NATS publisher for backfilled trades.

Consumes a scraper's trade stream and forwards every trade as JSON to the
exchange's trade subject, e.g. ``trades.uniswapv2``.
"""

import logging
from typing import AsyncIterable, Optional

from ...models import NormalizedTrade
from .client import NatsClient

logger = logging.getLogger(__name__)


class TradePublisher:
    """
    Publisher for normalized trades to NATS.

    This class forwards the output of a backfill session to NATS for
    consumption by the price aggregation services.
    """

    def __init__(self, nats_client: NatsClient, subject: str, log_every: int = 1000):
        """
        Initialize the trade publisher.

        Args:
            nats_client: Client used to publish
            subject: Subject trades are published on
            log_every: Log progress every N trades
        """
        self.nats_client = nats_client
        self.subject = subject
        self.log_every = log_every
        self.published = 0

    @classmethod
    def from_config(cls, nats_config, exchange: str) -> "TradePublisher":
        return cls(NatsClient.from_config(nats_config), nats_config.get_trade_subject(exchange))

    async def aconnect(self):
        await self.nats_client.aconnect()
        logger.info(f"TradePublisher connected, publishing to {self.subject}")

    async def aclose(self):
        await self.nats_client.aclose()
        logger.info(f"TradePublisher closed after {self.published} trades")

    async def __aenter__(self):
        await self.aconnect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def apublish_trade(self, trade: NormalizedTrade):
        """Publish one trade."""
        message = {
            "type": "trade",
            "data": trade.to_dict(),
        }
        await self.nats_client.apublish(self.subject, message)
        self.published += 1
        if self.log_every and self.published % self.log_every == 0:
            logger.info(f"Published {self.published} trades to {self.subject}")

    async def arun(self, trades: AsyncIterable[NormalizedTrade], limit: Optional[int] = None) -> int:
        """
        Publish trades until the stream ends or ``limit`` trades were sent.

        Returns:
            Number of trades published by this call
        """
        count = 0
        async for trade in trades:
            await self.apublish_trade(trade)
            count += 1
            if limit is not None and count >= limit:
                break
        await self.nats_client.aflush()
        return count
