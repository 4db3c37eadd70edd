"""
Chain-specific configuration for swap_backfill.
"""

from dataclasses import dataclass
from typing import Dict

from .base import BaseConfig


@dataclass
class ChainConfig(BaseConfig):
    """Chain endpoints and block settings for the EVM chains the exchanges live on."""

    # Chain-specific RPC URLs (REST endpoints are used for calls and log queries)
    ETHEREUM_RPC_URL: str = BaseConfig.get_env("ETH_URI_REST", "http://localhost:8545")
    ETHEREUM_WS_URL: str = BaseConfig.get_env("ETH_URI_WS", "ws://localhost:8546")
    BSC_RPC_URL: str = BaseConfig.get_env(
        "ETH_URI_REST_BSC", "https://bsc-dataseed1.binance.org/"
    )
    BSC_WS_URL: str = BaseConfig.get_env("ETH_URI_WS_BSC", "wss://bsc-ws-node.nariox.org:443")
    POLYGON_RPC_URL: str = BaseConfig.get_env("POLYGON_URI_REST", "https://polygon-rpc.com")
    POLYGON_WS_URL: str = BaseConfig.get_env("POLYGON_URI_WS", "wss://polygon-rpc.com")

    # Chain IDs
    ETHEREUM_CHAIN_ID: int = 1
    BSC_CHAIN_ID: int = 56
    POLYGON_CHAIN_ID: int = 137

    # HTTP request timeout for the node client (seconds)
    RPC_TIMEOUT: int = BaseConfig.get_env_int("RPC_TIMEOUT", 60)

    @property
    def supported_chains(self) -> Dict[str, Dict]:
        """Get configuration for all supported chains."""
        return {
            "ethereum": {
                "chain_id": self.ETHEREUM_CHAIN_ID,
                "rpc_url": self.ETHEREUM_RPC_URL,
                "ws_url": self.ETHEREUM_WS_URL,
                "native_token": "ETH",
            },
            "bsc": {
                "chain_id": self.BSC_CHAIN_ID,
                "rpc_url": self.BSC_RPC_URL,
                "ws_url": self.BSC_WS_URL,
                "native_token": "BNB",
            },
            "polygon": {
                "chain_id": self.POLYGON_CHAIN_ID,
                "rpc_url": self.POLYGON_RPC_URL,
                "ws_url": self.POLYGON_WS_URL,
                "native_token": "MATIC",
            },
        }

    def get_chain_config(self, chain_name: str) -> Dict:
        """Get configuration for a specific chain."""
        if chain_name not in self.supported_chains:
            raise ValueError(f"Unsupported chain: {chain_name}")
        return self.supported_chains[chain_name]

    def get_rpc_url(self, chain_name: str) -> str:
        """Get RPC URL for a specific chain."""
        return self.get_chain_config(chain_name)["rpc_url"]

    def get_chain_id(self, chain_name: str) -> int:
        """Get chain ID for a specific chain."""
        return self.get_chain_config(chain_name)["chain_id"]
