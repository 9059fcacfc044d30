"""Exchange configuration."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from exchange.constants import (
    FEE_DENOMINATOR,
    FEE_NUMERATOR,
    SHARE_DECIMALS,
    SHARE_NAME,
    SHARE_SYMBOL,
)


class Rounding(str, Enum):
    """Rounding direction for a liquidity calculation."""

    FLOOR = "floor"
    CEIL = "ceil"


@dataclass(frozen=True)
class ExchangeConfig:
    """Centralized configuration for pricing and liquidity accounting.

    The defaults reproduce the 0.3% constant-product family: the deposit
    required from a liquidity provider rounds up (in the pool's favor) and
    minted shares round down.

    Attributes:
        fee_numerator: Share of the input that is priced (default: 997)
        fee_denominator: Fee base (default: 1000)
        deposit_rounding: Rounding of the asset amount required by a
            deposit into a funded pool
        share_rounding: Rounding of the shares minted by such a deposit
        share_name: Liquidity share token name
        share_symbol: Liquidity share token symbol
        share_decimals: Liquidity share token decimals
    """

    fee_numerator: int = FEE_NUMERATOR
    fee_denominator: int = FEE_DENOMINATOR

    deposit_rounding: Rounding = Rounding.CEIL
    share_rounding: Rounding = Rounding.FLOOR

    share_name: str = SHARE_NAME
    share_symbol: str = SHARE_SYMBOL
    share_decimals: int = SHARE_DECIMALS

    def __post_init__(self) -> None:
        if self.fee_denominator <= 0:
            raise ValueError(f"fee_denominator must be positive, got {self.fee_denominator}")
        if not 0 < self.fee_numerator <= self.fee_denominator:
            raise ValueError(
                f"fee_numerator must be in (0, {self.fee_denominator}], got {self.fee_numerator}"
            )

    @property
    def fee_bps(self) -> int:
        """Trading fee in basis points (30 for 997/1000)."""
        return (self.fee_denominator - self.fee_numerator) * 10_000 // self.fee_denominator


# Default configuration instance
DEFAULT_EXCHANGE_CONFIG = ExchangeConfig()


def load_config(environ: Mapping[str, str] | None = None) -> ExchangeConfig:
    """Build an ExchangeConfig from environment variables.

    Configuration via environment variables:
    - EXCHANGE_FEE_NUMERATOR: priced share of the input (default: 997)
    - EXCHANGE_FEE_DENOMINATOR: fee base (default: 1000)
    - EXCHANGE_DEPOSIT_ROUNDING: "ceil" or "floor" (default: ceil)
    - EXCHANGE_SHARE_ROUNDING: "ceil" or "floor" (default: floor)

    Raises:
        ValueError: If a variable holds an invalid value
    """
    env = os.environ if environ is None else environ
    return ExchangeConfig(
        fee_numerator=int(env.get("EXCHANGE_FEE_NUMERATOR", FEE_NUMERATOR)),
        fee_denominator=int(env.get("EXCHANGE_FEE_DENOMINATOR", FEE_DENOMINATOR)),
        deposit_rounding=Rounding(env.get("EXCHANGE_DEPOSIT_ROUNDING", Rounding.CEIL.value)),
        share_rounding=Rounding(env.get("EXCHANGE_SHARE_ROUNDING", Rounding.FLOOR.value)),
    )
