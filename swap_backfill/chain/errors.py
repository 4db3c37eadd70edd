"""
Error handling utilities for chain client operations.

The node reports oversized log queries only through its error message, so
the message matching lives here and the rest of the package works with the
typed exceptions below.
"""

from typing import Optional
import logging

logger = logging.getLogger(__name__)


class ChainClientError(Exception):
    """Base exception for chain client operations."""
    pass


class LogQueryTooLargeError(ChainClientError):
    """Raised when a log query exceeds the node's result count or payload limit."""
    pass


class TransientChainError(ChainClientError):
    """Raised for network, timeout and any other retryable node failure."""
    pass


class MalformedLogError(ChainClientError):
    """Raised when a log entry cannot be decoded as a Swap event."""
    pass


class ContractCallError(ChainClientError):
    """Raised when a read-only contract call fails."""

    def __init__(self, message: str, address: Optional[str] = None, method: Optional[str] = None):
        super().__init__(message)
        self.address = address
        self.method = method


class DialError(ChainClientError):
    """Raised when a client cannot be created for an endpoint."""
    pass


TOO_LARGE_MARKERS = (
    "query returned more than 10000 results",
    "log response size exceeded",
    "exceeds max results",
    "response size exceeded",
    "limit exceeded",
    "payload too large",
)


class ErrorHandler:
    """
    Centralized error classification for node failures.

    Maps the errors encountered while calling contracts and querying logs
    to a category and to the typed exceptions above.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def classify_error(self, error: Exception) -> str:
        """
        Classify an error into a category for appropriate handling.

        Args:
            error: Exception to classify

        Returns:
            Error category string
        """
        error_str = str(error).lower()

        if any(marker in error_str for marker in TOO_LARGE_MARKERS):
            return 'too_large'

        # Rate limiting errors
        if any(keyword in error_str for keyword in ['rate limit', 'too many requests', '429']):
            return 'rate_limit'

        # Network connectivity errors
        if any(keyword in error_str for keyword in ['connection', 'timeout', 'timed out', 'network', 'dns']):
            return 'network'

        # Contract execution errors
        if any(keyword in error_str for keyword in ['revert', 'execution reverted', 'out of gas']):
            return 'contract'

        return 'unknown'

    def to_log_query_error(self, error: Exception, context: str) -> ChainClientError:
        """Wrap a raw log query failure into the typed exception the scanner expects."""
        category = self.classify_error(error)
        self.logger.debug(f"{context}: log query failed ({category}): {error}")
        if category == "too_large":
            return LogQueryTooLargeError(f"{context}: {error}")
        return TransientChainError(f"{context}: {error}")
