"""
Exchange catalogue for swap_backfill.

Every supported exchange is a Uniswap V2 style AMM: a factory contract that
enumerates pair contracts, each emitting the same Swap event.
"""

from dataclasses import dataclass
from typing import Dict, List

from .base import BaseConfig


UNISWAP_EXCHANGE = "UniswapV2"
SUSHISWAP_EXCHANGE = "SushiSwap"
PANCAKESWAP_EXCHANGE = "PanCakeSwap"
DFYN_EXCHANGE = "DfynNetwork"


@dataclass
class ExchangeConfig(BaseConfig):
    """Configuration for the AMM exchanges that can be backfilled."""

    # Swap(address indexed sender, uint amount0In, uint amount1In,
    #      uint amount0Out, uint amount1Out, address indexed to)
    UNISWAP_V2_SWAP_EVENT: str = (
        "0xd78ad95fa46c994b6551d0da85fc275fe613ce37657fb8d5e3d130840159d822"
    )

    # Genesis block override, applies to whichever exchange is selected
    GENESIS_BLOCK_OVERRIDE: int = BaseConfig.get_env_int("GENESIS_BLOCK", -1)

    # Inter-worker launch delay override in milliseconds
    WAIT_MILLISECONDS_OVERRIDE: int = BaseConfig.get_env_int("WAIT_MILLISECONDS", -1)

    @property
    def exchanges(self) -> Dict[str, Dict]:
        """Exchange settings keyed by exchange name."""
        return {
            UNISWAP_EXCHANGE: {
                "chain": "ethereum",
                "factory_address": "0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f",
                "genesis_block": 10000000,
                "wait_milliseconds": 500,
            },
            SUSHISWAP_EXCHANGE: {
                "chain": "ethereum",
                "factory_address": "0xC0AEe478e3658e2610c5F7A4A2E1777cE9e4f2Ac",
                "genesis_block": 10794229,
                "wait_milliseconds": 500,
            },
            PANCAKESWAP_EXCHANGE: {
                "chain": "bsc",
                "factory_address": "0xcA143Ce32Fe78f1f7019d7d551a6402fC5350c73",
                "genesis_block": 6809737,
                "wait_milliseconds": 500,
            },
            DFYN_EXCHANGE: {
                "chain": "polygon",
                "factory_address": "0xE7Fb3e833eFE5F9c441105EB65Ef8b261266423B",
                "genesis_block": 0,
                "wait_milliseconds": 500,
            },
        }

    @property
    def supported_exchanges(self) -> List[str]:
        """Get list of supported exchange names."""
        return list(self.exchanges.keys())

    def get_exchange_config(self, exchange: str) -> Dict:
        """Get configuration for a specific exchange."""
        if exchange not in self.exchanges:
            raise ValueError(f"Unsupported exchange: {exchange}")
        return self.exchanges[exchange]

    def get_factory_address(self, exchange: str) -> str:
        """Get the pair factory address of an exchange."""
        return self.get_exchange_config(exchange)["factory_address"]

    def get_chain(self, exchange: str) -> str:
        """Get the chain an exchange is deployed on."""
        return self.get_exchange_config(exchange)["chain"]

    def get_genesis_block(self, exchange: str) -> int:
        """Get the first block to backfill from."""
        if self.GENESIS_BLOCK_OVERRIDE >= 0:
            return self.GENESIS_BLOCK_OVERRIDE
        return self.get_exchange_config(exchange)["genesis_block"]

    def get_wait_seconds(self, exchange: str) -> float:
        """Get the delay between launching two backfill workers."""
        millis = self.WAIT_MILLISECONDS_OVERRIDE
        if millis < 0:
            millis = self.get_exchange_config(exchange)["wait_milliseconds"]
        return millis / 1000.0
