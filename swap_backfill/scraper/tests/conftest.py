"""Shared fakes for the backfill engine tests."""
import pytest

from ...chain.abis import ERC20_BYTES32_ABI
from ...chain.client import BlockHeader
from ...chain.errors import ContractCallError
from ...config import ConfigManager
from ...core.storage import BlockData
from ...models import RawSwapEvent

FACTORY = "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f"
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
MKR = "0x9f8F72aA9304c8B593d555F12eF6589cC3A579A2"
SCAM = "0x1111111111111111111111111111111111111111"
POOL_WETH_USDC = "0xB4e16d0168e52d35CaCD2c6185b44281Ec28C9Dc"
POOL_MKR_WETH = "0xC2aDdA861F89bBB333c90c492cB837741916A225"
POOL_SCAM_WETH = "0x2222222222222222222222222222222222222222"

BASE_TIMESTAMP = 1600000000


class FakeChainClient:
    """In-memory stand-in for ChainClient backed by dictionaries."""

    def __init__(self, head: int = 200):
        self.head = head
        self.contracts = {}
        self.swaps = {}
        self.log_errors = []
        self.log_queries = []
        self.pair_count = 0
        self.closed = False

    @staticmethod
    def _key(address, method, args, kind):
        args = tuple(a.lower() if isinstance(a, str) else a for a in args)
        return (address.lower(), method, args, kind)

    def set_value(self, address, method, value, *args, bytes32=False):
        kind = "bytes32" if bytes32 else "string"
        self.contracts[self._key(address, method, args, kind)] = value

    def add_token(self, address, symbol, name, decimals, bytes32=False):
        self.set_value(address, "symbol", symbol, bytes32=bytes32)
        self.set_value(address, "name", name, bytes32=bytes32)
        self.set_value(address, "decimals", decimals)

    def add_pair(self, pool, token0, token1):
        self.set_value(FACTORY, "allPairs", pool, self.pair_count)
        self.set_value(pool, "token0", token0)
        self.set_value(pool, "token1", token1)
        self.set_value(FACTORY, "getPair", pool, token0, token1)
        self.set_value(FACTORY, "getPair", pool, token1, token0)
        self.pair_count += 1
        self.set_value(FACTORY, "allPairsLength", self.pair_count)

    def add_swap(self, pool, block_number, amount0_in=0, amount1_in=0, amount0_out=0, amount1_out=0, log_index=0):
        event = RawSwapEvent(
            tx_hash=f"0x{block_number:064x}",
            block_number=block_number,
            log_index=log_index,
            pool_address=pool,
            amount0_in=amount0_in,
            amount1_in=amount1_in,
            amount0_out=amount0_out,
            amount1_out=amount1_out,
        )
        self.swaps.setdefault(pool.lower(), []).append(event)
        return event

    async def call_contract_method(self, address, abi, method, *args):
        kind = "bytes32" if abi is ERC20_BYTES32_ABI else "string"
        key = self._key(address, method, args, kind)
        if key not in self.contracts:
            raise ContractCallError(f"{method}() reverted", address=address, method=method)
        value = self.contracts[key]
        if isinstance(value, Exception):
            raise value
        return value

    async def open_log_cursor(self, address, event_topic, from_block, to_block):
        self.log_queries.append((from_block, to_block))
        if self.log_errors:
            raise self.log_errors.pop(0)
        return [
            e for e in self.swaps.get(address.lower(), [])
            if from_block <= e.block_number <= to_block
        ]

    async def get_latest_block(self):
        return self.head

    async def get_block(self, block_number):
        return BlockHeader(number=block_number, timestamp=BASE_TIMESTAMP + block_number, hash="0x00")

    def close(self):
        self.closed = True


class FakeBlockStore:
    """Block store answering from a formula instead of Postgres."""

    def __init__(self):
        self.lookups = []
        self.closed = False

    async def get_block_metadata(self, block_number):
        self.lookups.append(block_number)
        return BlockData(number=block_number, timestamp=BASE_TIMESTAMP + block_number, hash="0x00")

    async def close(self):
        self.closed = True


@pytest.fixture
def chain_client():
    """Chain with WETH-USDC, MKR-WETH (bytes32 MKR) and a SCAM-WETH pair."""
    client = FakeChainClient()
    client.add_token(WETH, "WETH", "Wrapped Ether", 18)
    client.add_token(USDC, "USDC", "USD Coin", 6)
    client.add_token(MKR, b"MKR".ljust(32, b"\x00"), b"Maker".ljust(32, b"\x00"), 18, bytes32=True)
    client.add_token(SCAM, "SCAM", "Scam Token", 18)
    client.add_pair(POOL_WETH_USDC, WETH, USDC)
    client.add_pair(POOL_MKR_WETH, MKR, WETH)
    client.add_pair(POOL_SCAM_WETH, SCAM, WETH)
    return client


@pytest.fixture
def block_store():
    return FakeBlockStore()


@pytest.fixture
def config():
    """Configuration with delays removed and empty token lists."""
    manager = ConfigManager(environment="test")
    scraper = manager.scraper
    scraper.SETTLE_DELAY_SECONDS = 0
    scraper.RETRY_DELAY_SECONDS = 0
    scraper.MAX_RETRY_DELAY_SECONDS = 0
    scraper.BACKFILL_WORKERS = 5
    scraper.BACKFILL_ALL_PAIRS = False
    scraper.TRADE_CHANNEL_CAPACITY = 1
    scraper.BLACKLISTED_SYMBOLS = ["SCAM"]
    scraper.BLACKLISTED_ADDRESSES = []
    scraper.REVERSE_TOKENS = []
    scraper.REFERENCE_TOKENS = []
    scraper.BLACKLIST_FILE = ""
    scraper.REVERSE_TOKENS_FILE = ""
    manager.exchanges.WAIT_MILLISECONDS_OVERRIDE = 0
    manager.exchanges.GENESIS_BLOCK_OVERRIDE = 0
    return manager
