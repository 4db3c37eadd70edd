"""
NATS client utilities for swap_backfill.

This module provides NATS messaging for publishing backfilled trades.
"""

from .client import NatsClient
from .json_helpers import dumps, loads
from .trade_publisher import TradePublisher

__all__ = ["NatsClient", "TradePublisher", "dumps", "loads"]
