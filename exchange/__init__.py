"""Constant-product exchange engine - Python Implementation."""

from exchange.deployment import Deployment, get_default_deployment
from exchange.pools import ExchangeRegistry, LiquidityPool
from exchange.runtime import Runtime

__version__ = "0.1.0"
__all__ = [
    "Deployment",
    "ExchangeRegistry",
    "LiquidityPool",
    "Runtime",
    "get_default_deployment",
    "__version__",
]
