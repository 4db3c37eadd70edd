"""
Database configuration for swap_backfill.
"""

from dataclasses import dataclass

from .base import BaseConfig


@dataclass
class DatabaseConfig(BaseConfig):
    """Postgres settings for the block metadata store."""

    # PostgreSQL Configuration
    POSTGRES_HOST: str = BaseConfig.get_env("POSTGRES_HOST", "localhost")
    POSTGRES_PORT: int = BaseConfig.get_env_int("POSTGRES_PORT", 5432)
    POSTGRES_USER: str = BaseConfig.get_env("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = BaseConfig.get_env("POSTGRES_PASSWORD", "")
    POSTGRES_DB: str = BaseConfig.get_env("POSTGRES_DB", "postgres")

    # Connection Settings
    CONNECTION_TIMEOUT: int = BaseConfig.get_env_int("CONNECTION_TIMEOUT", 30)
    RECONNECT_DELAY_SECONDS: float = BaseConfig.get_env_float("POSTGRES_RECONNECT_DELAY", 5.0)
    HEALTH_CHECK_INTERVAL_SECONDS: float = BaseConfig.get_env_float(
        "POSTGRES_HEALTH_CHECK_INTERVAL", 30.0
    )

    # Table Naming
    BLOCKDATA_TABLE: str = BaseConfig.get_env("BLOCKDATA_TABLE", "blockdata")

    @property
    def postgres_url(self) -> str:
        """Build PostgreSQL connection URL."""
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )
