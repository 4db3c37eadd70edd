"""
Backfill engine configuration for swap_backfill.
"""

from dataclasses import dataclass, field
from typing import List

from .base import BaseConfig


@dataclass
class ScraperConfig(BaseConfig):
    """Window sizes, concurrency, retry policy and token lists for the backfill."""

    # Log scanning
    WINDOW_BLOCKS: int = BaseConfig.get_env_int("FILTER_QUERY_BLOCK_NUMS", 1000)
    MAX_RETRY_ATTEMPTS: int = BaseConfig.get_env_int("MAX_RETRY_ATTEMPTS", 10)
    RETRY_DELAY_SECONDS: float = BaseConfig.get_env_float("RETRY_DELAY_SECONDS", 5.0)
    MAX_RETRY_DELAY_SECONDS: float = BaseConfig.get_env_float("MAX_RETRY_DELAY_SECONDS", 60.0)

    # Scheduling
    BACKFILL_WORKERS: int = BaseConfig.get_env_int("BACKFILL_WORKERS", 5)
    BACKFILL_ALL_PAIRS: bool = BaseConfig.get_env_bool("BACKFILL_ALL_PAIRS", False)
    SETTLE_DELAY_SECONDS: float = BaseConfig.get_env_float("SETTLE_DELAY_SECONDS", 4.0)
    DISCOVERY_CONCURRENCY: int = BaseConfig.get_env_int("DISCOVERY_CONCURRENCY", 16)

    # Emission
    TRADE_CHANNEL_CAPACITY: int = BaseConfig.get_env_int("TRADE_CHANNEL_CAPACITY", 1)

    # Token lists (addresses are compared lowercase, symbols uppercase)
    BLACKLISTED_SYMBOLS: List[str] = field(
        default_factory=lambda: BaseConfig.get_env_list("BLACKLISTED_SYMBOLS")
    )
    BLACKLISTED_ADDRESSES: List[str] = field(
        default_factory=lambda: BaseConfig.get_env_list("BLACKLISTED_ADDRESSES")
    )
    REVERSE_TOKENS: List[str] = field(
        default_factory=lambda: BaseConfig.get_env_list("REVERSE_TOKENS")
    )
    REFERENCE_TOKENS: List[str] = field(
        default_factory=lambda: BaseConfig.get_env_list("REFERENCE_TOKENS")
    )

    # Optional JSON files merged into the lists above
    BLACKLIST_FILE: str = BaseConfig.get_env("BLACKLIST_FILE", "")
    REVERSE_TOKENS_FILE: str = BaseConfig.get_env("REVERSE_TOKENS_FILE", "")
