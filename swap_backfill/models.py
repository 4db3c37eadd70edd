"""
Data model shared by the chain client, the backfill engine and its consumers.

Naming follows the usual market convention: the base token is the asset
being priced, the quote token is the unit the price is expressed in. For a
pool that means token0 is the base and token1 the quote, so a pair is
displayed as ``"SYMBOL0-SYMBOL1"`` and ``price`` is token1 per token0.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass(frozen=True)
class Token:
    """ERC20 token metadata, cached by address once resolved."""

    address: str
    symbol: str
    name: str
    decimals: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "symbol": self.symbol,
            "name": self.name,
            "decimals": self.decimals,
        }


@dataclass(frozen=True)
class Pair:
    """
    A pool contract and its two tokens.

    ``flipped`` is set when canonicalization swapped the pool's own token
    order; raw swap amounts are still reported in pool order and must be
    mapped back before use.
    """

    address: str
    token0: Token
    token1: Token
    flipped: bool = False

    @property
    def foreign_name(self) -> str:
        return f"{self.token0.symbol}-{self.token1.symbol}"

    def reordered(self) -> "Pair":
        """Return the pair with token0 and token1 exchanged."""
        return Pair(
            address=self.address,
            token0=self.token1,
            token1=self.token0,
            flipped=not self.flipped,
        )


@dataclass(frozen=True)
class PairSummary:
    """Pair description exchanged with the pair catalogue and ``scrape_pair`` callers."""

    symbol: str
    foreign_name: str
    exchange: str
    base_token: Token
    quote_token: Token
    verified: bool = True

    @classmethod
    def from_pair(cls, pair: Pair, exchange: str) -> "PairSummary":
        return cls(
            symbol=pair.token0.symbol,
            foreign_name=pair.foreign_name,
            exchange=exchange,
            base_token=pair.token0,
            quote_token=pair.token1,
            verified=True,
        )


@dataclass(frozen=True)
class RawSwapEvent:
    """One Swap log entry with amounts in token native units, in pool token order."""

    tx_hash: str
    block_number: int
    log_index: int
    pool_address: str
    amount0_in: int
    amount1_in: int
    amount0_out: int
    amount1_out: int


@dataclass(frozen=True)
class NormalizedTrade:
    """A decimal-scaled trade ready for downstream consumption."""

    symbol: str
    pair: str
    price: float
    volume: float
    base_token: Token
    quote_token: Token
    time: datetime
    foreign_trade_id: str
    source: str
    verified_pair: bool = True
    block_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "pair": self.pair,
            "price": self.price,
            "volume": self.volume,
            "base_token": self.base_token.to_dict(),
            "quote_token": self.quote_token.to_dict(),
            "time": self.time.isoformat(),
            "foreign_trade_id": self.foreign_trade_id,
            "source": self.source,
            "verified_pair": self.verified_pair,
            "block_number": self.block_number,
        }


def swap_trade(trade: NormalizedTrade) -> NormalizedTrade:
    """
    Re-quote a trade in the opposite direction.

    Base and quote exchange places, the price is inverted and the volume is
    expressed in units of the new base token.

    Raises:
        ValueError: If the trade has a zero price
    """
    if trade.price == 0:
        raise ValueError("zero price. cannot swap trade")

    base_token, quote_token = trade.quote_token, trade.base_token
    return replace(
        trade,
        base_token=base_token,
        quote_token=quote_token,
        volume=-trade.price * trade.volume,
        price=1 / trade.price,
        symbol=base_token.symbol,
        pair=f"{base_token.symbol}-{quote_token.symbol}",
    )


def timestamp_to_datetime(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)
