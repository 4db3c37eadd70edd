"""
Exceptions raised by the backfill engine.
"""

from typing import Optional


class ScraperError(Exception):
    """Base exception for backfill engine errors."""
    pass


class ScraperClosedError(ScraperError):
    """Raised when a closed scraper is used or closed a second time."""
    pass


class FatalStartupError(ScraperError):
    """Raised when a required chain client cannot be dialed."""
    pass


class PairLookupError(ScraperError):
    """Raised when pair or token metadata cannot be resolved."""

    def __init__(self, message: str, address: Optional[str] = None, index: Optional[int] = None):
        super().__init__(message)
        self.address = address
        self.index = index


class ScanAbortedError(ScraperError):
    """Raised when a log scan gives up on a window."""

    def __init__(self, message: str, window_start: int, window_end: int):
        super().__init__(message)
        self.window_start = window_start
        self.window_end = window_end


class NormalizationError(ScraperError):
    """Raised when a raw swap cannot be turned into a trade."""
    pass


class UnknownPoolError(NormalizationError):
    """Raised when a swap comes from a pool that is not in the registry."""
    pass


class AmbiguousSwapError(NormalizationError):
    """Raised when a swap's base-token flow has no single direction."""
    pass
