"""
Environment-backed configuration base for swap_backfill.

Every config section is a dataclass whose defaults are read from the
environment (and an optional ``.env`` file) when the module is imported.
"""

import os
import logging
from typing import Callable, List, Optional, TypeVar
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ENVIRONMENTS = ("local", "dev", "staging", "production", "test")

T = TypeVar("T")


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""
    pass


def configure_logging(level: str = "INFO"):
    """Install the process-wide log format at ``level``."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def _convert(key: str, value: Optional[str], convert: Callable[[str], T], kind: str) -> T:
    try:
        return convert(value)
    except (ValueError, TypeError):
        raise ConfigError(f"Environment variable '{key}' must be {kind}, got: {value}")


@dataclass
class BaseConfig:
    """Shared environment settings and typed environment getters."""

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "local")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self):
        configure_logging(self.LOG_LEVEL)
        if self.ENVIRONMENT not in ENVIRONMENTS:
            raise ConfigError(f"Invalid environment: {self.ENVIRONMENT}")

    @staticmethod
    def get_env(key: str, default: Optional[str] = None, required: bool = False) -> str:
        """
        Read an environment variable.

        Raises:
            ConfigError: If ``required`` and the variable is not set
        """
        value = os.getenv(key, default)
        if required and value is None:
            raise ConfigError(f"Required environment variable '{key}' is not set")
        return value

    @staticmethod
    def get_env_int(key: str, default: Optional[int] = None, required: bool = False) -> int:
        value = BaseConfig.get_env(key, None if default is None else str(default), required)
        return _convert(key, value, int, "an integer")

    @staticmethod
    def get_env_float(key: str, default: Optional[float] = None, required: bool = False) -> float:
        value = BaseConfig.get_env(key, None if default is None else str(default), required)
        return _convert(key, value, float, "a float")

    @staticmethod
    def get_env_bool(key: str, default: bool = False) -> bool:
        return BaseConfig.get_env(key, str(default)).lower() in ("true", "1", "yes", "on")

    @staticmethod
    def get_env_list(key: str, default: Optional[List[str]] = None, separator: str = ",") -> List[str]:
        """Comma separated variable as a list of stripped, non-empty items."""
        value = BaseConfig.get_env(key, separator.join(default or []))
        return [item.strip() for item in value.split(separator) if item.strip()]
