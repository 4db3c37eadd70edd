"""
PostgreSQL block metadata store for the swap backfill.

Block timestamps are looked up for every Swap log, so they are served from
an in-process cache first, then from the ``blockdata`` table, and only as a
last resort from the node, writing the result back to the table.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import asyncpg

from .base import ConnectionError, DataError, StorageBase
from .resilient import ResilientConnection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockData:
    """Block number, timestamp (unix seconds) and hash."""

    number: int
    timestamp: int
    hash: str


class BlockStore(StorageBase):
    """
    Block metadata lookups backed by PostgreSQL and a chain client.

    The database connection is a single ``asyncpg`` connection managed by
    ``ResilientConnection``; when the database is down, lookups block until
    it comes back.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        chain_client: Any = None,
        connection: Optional[ResilientConnection] = None,
    ):
        """
        Initialize the block store.

        Args:
            config: Configuration with keys:
                - dsn: PostgreSQL connection URL
                - chain: Chain name the blocks belong to (default: ethereum)
                - table: Table name (default: blockdata)
                - timeout: Connect timeout in seconds (default: 30)
                - reconnect_delay: Seconds between reconnect attempts (default: 5)
                - health_check_interval: Seconds between pings (default: 30)
            chain_client: Client with ``get_block(number)`` used on cache misses
            connection: Pre-built connection, mainly for tests
        """
        super().__init__(config)
        self.chain_client = chain_client
        self.chain = config.get("chain", "ethereum")
        self.table = config.get("table", "blockdata")
        self.timeout = config.get("timeout", 30)
        self.connection = connection or ResilientConnection(
            self._open_connection,
            name="postgres",
            reconnect_delay=config.get("reconnect_delay", 5.0),
            health_check_interval=config.get("health_check_interval", 30.0),
        )
        self._cache: Dict[int, BlockData] = {}
        self._schema_ready = False

    @classmethod
    def from_config(cls, database_config, chain: str, chain_client: Any = None) -> "BlockStore":
        """Build a store from a ``DatabaseConfig``."""
        return cls(
            {
                "dsn": database_config.postgres_url,
                "chain": chain,
                "table": database_config.BLOCKDATA_TABLE,
                "timeout": database_config.CONNECTION_TIMEOUT,
                "reconnect_delay": database_config.RECONNECT_DELAY_SECONDS,
                "health_check_interval": database_config.HEALTH_CHECK_INTERVAL_SECONDS,
            },
            chain_client=chain_client,
        )

    async def _open_connection(self):
        return await asyncpg.connect(self.config["dsn"], timeout=self.timeout)

    async def connect(self) -> None:
        """Open the connection, create the table and start health checks."""
        await self.connection.get()
        await self.ensure_schema()
        self.connection.start_health_check()
        self.is_connected = True
        logger.info(f"Block store connected (table {self.table}, chain {self.chain})")

    async def disconnect(self) -> None:
        """Close the database connection."""
        await self.connection.close()
        self.is_connected = False

    async def close(self) -> None:
        await self.disconnect()

    async def health_check(self) -> bool:
        return await self.connection.ping()

    async def ensure_schema(self) -> None:
        """Create the block metadata table if it does not exist."""
        if self._schema_ready:
            return
        conn = await self.connection.get()
        try:
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    blockchain TEXT NOT NULL,
                    block_number BIGINT NOT NULL,
                    block_timestamp BIGINT NOT NULL,
                    block_hash TEXT NOT NULL,
                    PRIMARY KEY (blockchain, block_number)
                )
                """
            )
        except Exception as e:
            raise DataError(f"Failed to create {self.table} table: {e}") from e
        self._schema_ready = True

    async def get_block_metadata(self, block_number: int) -> BlockData:
        """
        Return number, timestamp and hash of a block.

        Raises:
            DataError: If the block is neither stored nor retrievable from the chain
        """
        cached = self._cache.get(block_number)
        if cached is not None:
            return cached

        block = await self._load(block_number)
        if block is None:
            block = await self._fetch_from_chain(block_number)
            await self._store(block)

        self._cache[block_number] = block
        return block

    async def _load(self, block_number: int) -> Optional[BlockData]:
        conn = await self.connection.get()
        try:
            row = await conn.fetchrow(
                f"SELECT block_number, block_timestamp, block_hash FROM {self.table} "
                "WHERE blockchain = $1 AND block_number = $2",
                self.chain,
                block_number,
            )
        except Exception as e:
            logger.warning(f"Failed to read block {block_number} from {self.table}: {e}")
            return None

        if row is None:
            return None
        return BlockData(
            number=row["block_number"],
            timestamp=row["block_timestamp"],
            hash=row["block_hash"],
        )

    async def _fetch_from_chain(self, block_number: int) -> BlockData:
        if self.chain_client is None:
            raise DataError(f"Block {block_number} not stored and no chain client configured")
        try:
            header = await self.chain_client.get_block(block_number)
        except Exception as e:
            raise DataError(f"Failed to get block {block_number} from chain: {e}") from e
        return BlockData(number=header.number, timestamp=header.timestamp, hash=header.hash)

    async def _store(self, block: BlockData) -> None:
        try:
            conn = await self.connection.get()
            await conn.execute(
                f"INSERT INTO {self.table} (blockchain, block_number, block_timestamp, block_hash) "
                "VALUES ($1, $2, $3, $4) ON CONFLICT (blockchain, block_number) DO NOTHING",
                self.chain,
                block.number,
                block.timestamp,
                block.hash,
            )
        except ConnectionError:
            raise
        except Exception as e:
            # The value is still returned to the caller and cached in memory
            logger.warning(f"Failed to store block {block.number} in {self.table}: {e}")
