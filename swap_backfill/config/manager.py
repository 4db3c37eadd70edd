"""
Configuration manager for swap_backfill.

This module provides a centralized way to access all configuration settings
across the application. It combines all configuration classes into a single
easy-to-use interface.
"""

import logging
from typing import Dict, Any
from .base import BaseConfig, ConfigError
from .database import DatabaseConfig
from .chains import ChainConfig
from .exchanges import ExchangeConfig
from .scraper import ScraperConfig
from .nats_config import NatsConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Centralized configuration manager that combines all configuration classes.

    This class provides easy access to all configuration settings and ensures
    that configurations are properly initialized and validated.
    """

    def __init__(self, environment: str = None):
        """
        Initialize the configuration manager.

        Args:
            environment: Override the environment (local, dev, staging, production)
        """
        self._environment = environment
        self._base_config = None
        self._database_config = None
        self._chain_config = None
        self._exchange_config = None
        self._scraper_config = None
        self._nats_config = None
        self._initialize_configs()

    def _initialize_configs(self):
        """Initialize all configuration objects."""
        try:
            # Initialize base configuration first
            self._base_config = BaseConfig()
            if self._environment:
                self._base_config.ENVIRONMENT = self._environment

            self._database_config = DatabaseConfig()
            self._chain_config = ChainConfig()
            self._exchange_config = ExchangeConfig()
            self._scraper_config = ScraperConfig()
            self._nats_config = NatsConfig()

            logger.info(f"Configuration initialized for environment: {self.environment}")

        except Exception as e:
            logger.error(f"Failed to initialize configuration: {e}")
            raise ConfigError(f"Configuration initialization failed: {e}")

    @property
    def environment(self) -> str:
        """Get current environment."""
        return self._base_config.ENVIRONMENT

    @property
    def base(self) -> BaseConfig:
        """Get base configuration."""
        return self._base_config

    @property
    def database(self) -> DatabaseConfig:
        """Get database configuration."""
        return self._database_config

    @property
    def chains(self) -> ChainConfig:
        """Get chain configuration."""
        return self._chain_config

    @property
    def exchanges(self) -> ExchangeConfig:
        """Get exchange configuration."""
        return self._exchange_config

    @property
    def scraper(self) -> ScraperConfig:
        """Get backfill engine configuration."""
        return self._scraper_config

    @property
    def nats(self) -> NatsConfig:
        """Get NATS configuration."""
        return self._nats_config

    def get_exchange_chain_config(self, exchange: str) -> Dict[str, Any]:
        """
        Get combined exchange and chain configuration.

        Args:
            exchange: Exchange name (UniswapV2, SushiSwap, ...)

        Returns:
            Combined configuration dictionary
        """
        chain = self.exchanges.get_chain(exchange)
        chain_config = self.chains.get_chain_config(chain)

        return {
            "exchange": exchange,
            "chain": chain,
            "chain_id": chain_config["chain_id"],
            "rpc_url": chain_config["rpc_url"],
            "ws_url": chain_config["ws_url"],
            "factory_address": self.exchanges.get_factory_address(exchange),
            "genesis_block": self.exchanges.get_genesis_block(exchange),
            "wait_seconds": self.exchanges.get_wait_seconds(exchange),
        }

    def validate_configuration(self) -> bool:
        """
        Validate all configuration settings.

        Returns:
            True if all configurations are valid

        Raises:
            ConfigError: If any configuration is invalid
        """
        try:
            if not self.database.postgres_url:
                raise ConfigError("PostgreSQL URL not configured")

            for exchange in self.exchanges.supported_exchanges:
                chain = self.exchanges.get_chain(exchange)
                if chain not in self.chains.supported_chains:
                    raise ConfigError(f"Exchange {exchange} uses unknown chain {chain}")

            if self.scraper.WINDOW_BLOCKS <= 0:
                raise ConfigError("FILTER_QUERY_BLOCK_NUMS must be positive")
            if self.scraper.BACKFILL_WORKERS <= 0:
                raise ConfigError("BACKFILL_WORKERS must be positive")
            if self.scraper.TRADE_CHANNEL_CAPACITY <= 0:
                raise ConfigError("TRADE_CHANNEL_CAPACITY must be positive")

            logger.info("Configuration validation successful")
            return True

        except ConfigError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise


# Global configuration manager instance
_config_manager = None


def get_config(environment: str = None, force_reload: bool = False) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        environment: Override environment
        force_reload: Force reload of configuration

    Returns:
        ConfigManager instance
    """
    global _config_manager

    if _config_manager is None or force_reload:
        _config_manager = ConfigManager(environment=environment)
        _config_manager.validate_configuration()

    return _config_manager


def reload_config(environment: str = None) -> ConfigManager:
    """
    Reload the global configuration manager.

    Args:
        environment: Override environment

    Returns:
        New ConfigManager instance
    """
    return get_config(environment=environment, force_reload=True)
