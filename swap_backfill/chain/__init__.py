"""
Chain access for the backfill engine.

This package wraps the node client used for contract calls and log
queries, and classifies node failures into typed exceptions.
"""

from .client import BlockHeader, ChainClient, ClientClosedError, LogCursor, decode_swap_log
from .errors import (
    ChainClientError,
    ContractCallError,
    DialError,
    ErrorHandler,
    LogQueryTooLargeError,
    MalformedLogError,
    TransientChainError,
)

__all__ = [
    'BlockHeader',
    'ChainClient',
    'ClientClosedError',
    'LogCursor',
    'decode_swap_log',
    'ChainClientError',
    'ContractCallError',
    'DialError',
    'ErrorHandler',
    'LogQueryTooLargeError',
    'MalformedLogError',
    'TransientChainError',
]
