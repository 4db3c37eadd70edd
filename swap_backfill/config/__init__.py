"""
Configuration management for swap_backfill.

Use get_config() to access all configuration settings.

Example:
    from swap_backfill.config import get_config

    config = get_config()

    # Access exchange settings
    factory = config.exchanges.get_factory_address("UniswapV2")

    # Access chain settings
    ethereum_rpc = config.chains.get_rpc_url("ethereum")

    # Access backfill settings
    window = config.scraper.WINDOW_BLOCKS
"""

from .base import BaseConfig, ConfigError
from .chains import ChainConfig
from .database import DatabaseConfig
from .exchanges import ExchangeConfig
from .manager import ConfigManager, get_config, reload_config
from .nats_config import NatsConfig
from .scraper import ScraperConfig

__all__ = [
    "BaseConfig",
    "ConfigError",
    "ChainConfig",
    "ExchangeConfig",
    "ScraperConfig",
    "DatabaseConfig",
    "NatsConfig",
    "ConfigManager",
    "get_config",
    "reload_config",
]
