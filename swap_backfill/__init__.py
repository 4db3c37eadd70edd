"""
swap_backfill: historical DEX swap backfill engine.

Walks Uniswap V2 style pools from a genesis block to the chain head in
block windows and emits decimal-scaled trades.
"""

__version__ = "0.1.0"
