"""
Storage layer for the swap backfill.

Provides the block metadata store used to timestamp trades:
- PostgreSQL ``blockdata`` table with in-process caching
- Self-healing single connection (``ResilientConnection``)

Usage:
    from swap_backfill.core.storage import BlockStore

    store = BlockStore.from_config(config.database, "ethereum", chain_client)
    await store.connect()

    block = await store.get_block_metadata(10000835)
"""

from .base import ConnectionError, DataError, StorageBase, StorageError
from .postgres import BlockData, BlockStore
from .resilient import ResilientConnection

__all__ = [
    "StorageBase",
    "StorageError",
    "ConnectionError",
    "DataError",
    "BlockData",
    "BlockStore",
    "ResilientConnection",
]
