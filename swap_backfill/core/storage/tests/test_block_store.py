"""Tests for the block metadata store and its resilient connection."""
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from ..base import ConnectionError, DataError
from ..postgres import BlockData, BlockStore
from ..resilient import ResilientConnection


def make_conn(closed=False):
    conn = AsyncMock()
    conn.is_closed = Mock(return_value=closed)
    conn.fetchval.return_value = 1
    return conn


class TestResilientConnection:
    """Test lazy connect, reconnect and close."""

    @pytest.mark.asyncio
    async def test_connects_lazily_once(self):
        conn = make_conn()
        factory = AsyncMock(return_value=conn)
        resilient = ResilientConnection(factory, reconnect_delay=0)

        factory.assert_not_called()
        assert await resilient.get() is conn
        assert await resilient.get() is conn
        factory.assert_called_once()

    @pytest.mark.asyncio
    async def test_reconnects_lost_connection(self):
        first, second = make_conn(), make_conn()
        factory = AsyncMock(side_effect=[first, second])
        resilient = ResilientConnection(factory, reconnect_delay=0)

        assert await resilient.get() is first
        first.is_closed.return_value = True

        assert await resilient.get() is second
        assert factory.call_count == 2

    @pytest.mark.asyncio
    async def test_retries_until_backend_answers(self):
        conn = make_conn()
        factory = AsyncMock(side_effect=[OSError("connection refused"), OSError("connection refused"), conn])
        resilient = ResilientConnection(factory, reconnect_delay=0)

        assert await resilient.get() is conn
        assert factory.call_count == 3

    @pytest.mark.asyncio
    async def test_ping(self):
        conn = make_conn()
        resilient = ResilientConnection(AsyncMock(return_value=conn), reconnect_delay=0)

        assert await resilient.ping() is False
        await resilient.get()
        assert await resilient.ping() is True

        conn.fetchval.side_effect = OSError("broken pipe")
        assert await resilient.ping() is False

    @pytest.mark.asyncio
    async def test_close(self):
        conn = make_conn()
        resilient = ResilientConnection(AsyncMock(return_value=conn), reconnect_delay=0)
        await resilient.get()

        await resilient.close()
        await resilient.close()

        conn.close.assert_awaited_once()
        assert resilient.closed
        with pytest.raises(ConnectionError):
            await resilient.get()


class TestBlockStore:
    """Test block metadata lookups through cache, table and chain."""

    @pytest.fixture
    def conn(self):
        conn = make_conn()
        conn.fetchrow.return_value = None
        return conn

    @pytest.fixture
    def chain_client(self):
        client = Mock()
        client.get_block = AsyncMock(
            return_value=SimpleNamespace(number=100, timestamp=1600000000, hash="0xabc")
        )
        return client

    @pytest.fixture
    def store(self, conn, chain_client):
        connection = Mock()
        connection.get = AsyncMock(return_value=conn)
        return BlockStore({"chain": "ethereum"}, chain_client=chain_client, connection=connection)

    @pytest.mark.asyncio
    async def test_reads_stored_block(self, store, conn, chain_client):
        conn.fetchrow.return_value = {
            "block_number": 100,
            "block_timestamp": 1600000000,
            "block_hash": "0xabc",
        }

        block = await store.get_block_metadata(100)

        assert block == BlockData(number=100, timestamp=1600000000, hash="0xabc")
        chain_client.get_block.assert_not_called()
        conn.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_falls_back_to_chain_and_writes_back(self, store, conn, chain_client):
        block = await store.get_block_metadata(100)

        assert block.timestamp == 1600000000
        chain_client.get_block.assert_awaited_once_with(100)
        conn.execute.assert_awaited_once()
        insert_sql, *values = conn.execute.call_args[0]
        assert "INSERT INTO blockdata" in insert_sql
        assert values == ["ethereum", 100, 1600000000, "0xabc"]

    @pytest.mark.asyncio
    async def test_cache_hit_skips_database(self, store, conn, chain_client):
        await store.get_block_metadata(100)
        await store.get_block_metadata(100)

        conn.fetchrow.assert_awaited_once()
        chain_client.get_block.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_write_back_failure_still_returns_block(self, store, conn):
        conn.execute.side_effect = OSError("disk full")

        block = await store.get_block_metadata(100)

        assert block.number == 100

    @pytest.mark.asyncio
    async def test_chain_failure_raises_data_error(self, store, chain_client):
        chain_client.get_block.side_effect = RuntimeError("node down")

        with pytest.raises(DataError):
            await store.get_block_metadata(100)

    @pytest.mark.asyncio
    async def test_missing_chain_client(self, conn):
        connection = Mock()
        connection.get = AsyncMock(return_value=conn)
        store = BlockStore({}, connection=connection)

        with pytest.raises(DataError):
            await store.get_block_metadata(5)

    @pytest.mark.asyncio
    async def test_ensure_schema_runs_once(self, store, conn):
        await store.ensure_schema()
        await store.ensure_schema()

        conn.execute.assert_awaited_once()
        assert "CREATE TABLE IF NOT EXISTS blockdata" in conn.execute.call_args[0][0]

    def test_from_config(self):
        db_config = SimpleNamespace(
            postgres_url="postgresql://u:p@h:5432/db",
            BLOCKDATA_TABLE="blocks",
            CONNECTION_TIMEOUT=10,
            RECONNECT_DELAY_SECONDS=5.0,
            HEALTH_CHECK_INTERVAL_SECONDS=30.0,
        )

        store = BlockStore.from_config(db_config, "bsc")

        assert store.table == "blocks"
        assert store.chain == "bsc"
        assert store.connection.reconnect_delay == 5.0
