"""Constant-product pricing and liquidity math.

A pool holds a native reserve N and an asset reserve A and prices every
trade so that N * A never decreases. The fee is taken on the input side:
with the default 997/1000 configuration, 0.3% of every input stays in the
reserves without being priced, which permanently grows the product.
"""

from __future__ import annotations

from dataclasses import dataclass

from exchange.config import DEFAULT_EXCHANGE_CONFIG, ExchangeConfig, Rounding
from exchange.errors import InsufficientLiquidity
from exchange.safe_int import S, SafeInt


@dataclass(frozen=True)
class Withdrawal:
    """Amounts paid out for a burned share amount."""

    native_out: int
    asset_out: int


def _divide(numerator: SafeInt, denominator: SafeInt, rounding: Rounding) -> SafeInt:
    if rounding is Rounding.CEIL:
        return numerator.ceiling_div(denominator)
    return numerator // denominator


class ConstantProduct:
    """Constant-product pricing with a proportional input fee.

    Formula (exact input):
        out = (x * fee_num * r_out) / (r_in * fee_den + x * fee_num)

    Formula (exact output):
        in = (r_in * out * fee_den) / ((r_out - out) * fee_num) + 1
    """

    def __init__(self, config: ExchangeConfig = DEFAULT_EXCHANGE_CONFIG) -> None:
        self.config = config

    def get_input_price(self, input_amount: int, input_reserve: int, output_reserve: int) -> int:
        """Output bought by selling exactly ``input_amount``.

        Args:
            input_amount: Amount sold into the pool
            input_reserve: Pre-trade reserve of the sold side
            output_reserve: Pre-trade reserve of the bought side

        Returns:
            Output amount, rounded down. Zero for empty inputs or reserves.
        """
        if input_amount <= 0:
            return 0
        if input_reserve <= 0 or output_reserve <= 0:
            return 0

        input_with_fee = S(input_amount) * S(self.config.fee_numerator)
        numerator = input_with_fee * S(output_reserve)
        denominator = S(input_reserve) * S(self.config.fee_denominator) + input_with_fee

        return (numerator // denominator).value

    def get_output_price(self, output_amount: int, input_reserve: int, output_reserve: int) -> int:
        """Input required to buy exactly ``output_amount``.

        Returns:
            Required input amount, rounded up (one unit above the floor
            quotient). Zero for empty outputs or reserves.

        Raises:
            InsufficientLiquidity: If output_amount is not below output_reserve
        """
        if output_amount <= 0:
            return 0
        if input_reserve <= 0 or output_reserve <= 0:
            return 0
        if output_amount >= output_reserve:
            raise InsufficientLiquidity(
                f"Output {output_amount} must be below reserve {output_reserve}"
            )

        numerator = S(input_reserve) * S(output_amount) * S(self.config.fee_denominator)
        denominator = (S(output_reserve) - S(output_amount)) * S(self.config.fee_numerator)

        return ((numerator // denominator) + S(1)).value

    def deposit_required(self, native_in: int, native_reserve: int, asset_reserve: int) -> int:
        """Asset amount that keeps the reserve ratio for a native deposit.

        Rounded per ``config.deposit_rounding`` (up by default).
        """
        numerator = S(native_in) * S(asset_reserve)
        return _divide(numerator, S(native_reserve), self.config.deposit_rounding).value

    def shares_for_deposit(self, native_in: int, total_shares: int, native_reserve: int) -> int:
        """Shares minted for a native deposit into a funded pool.

        Rounded per ``config.share_rounding`` (down by default).
        """
        numerator = S(native_in) * S(total_shares)
        return _divide(numerator, S(native_reserve), self.config.share_rounding).value

    def withdrawal(
        self,
        shares_in: int,
        total_shares: int,
        native_reserve: int,
        asset_reserve: int,
    ) -> Withdrawal:
        """Proportional, rounded-down payout for burning ``shares_in``."""
        supply = S(total_shares)
        return Withdrawal(
            native_out=(S(shares_in) * S(native_reserve) // supply).value,
            asset_out=(S(shares_in) * S(asset_reserve) // supply).value,
        )


constant_product = ConstantProduct()


__all__ = [
    "ConstantProduct",
    "Withdrawal",
    "constant_product",
]
