"""AMM pricing implementations."""

from exchange.amm.pricing import ConstantProduct, Withdrawal, constant_product

__all__ = ["ConstantProduct", "Withdrawal", "constant_product"]
