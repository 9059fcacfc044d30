"""Pool management package.

Provides LiquidityPool (the per-asset exchange) and ExchangeRegistry (the
factory that creates and looks up pools).
"""

from .guard import ReentrancyGuard
from .pool import LiquidityPool, PoolState
from .registry import ExchangeRegistry
from .shares import ShareLedger

__all__ = [
    "ExchangeRegistry",
    "LiquidityPool",
    "PoolState",
    "ReentrancyGuard",
    "ShareLedger",
]
