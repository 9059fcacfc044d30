"""Tests for constant-product pricing and liquidity math."""

import pytest

from exchange.amm import ConstantProduct, Withdrawal, constant_product
from exchange.config import ExchangeConfig, Rounding
from exchange.errors import InsufficientLiquidity

ONE = 10**18


class TestInputPrice:
    """Tests for exact-input pricing."""

    def test_reference_swap(self):
        """0.1 native into a 1 native / 100,000 asset pool buys 9066."""
        assert constant_product.get_input_price(ONE // 10, ONE, 100_000) == 9066

    def test_matches_formula(self):
        x, r_in, r_out = 1 * ONE, 100 * ONE, 250_000 * 10**6
        expected = (x * 997 * r_out) // (r_in * 1000 + x * 997)
        assert constant_product.get_input_price(x, r_in, r_out) == expected

    def test_zero_input_or_reserve(self):
        """Empty inputs and reserves price to zero."""
        assert constant_product.get_input_price(0, 100, 100) == 0
        assert constant_product.get_input_price(100, 0, 100) == 0
        assert constant_product.get_input_price(100, 100, 0) == 0

    def test_output_below_reserve(self):
        """Even a huge input cannot drain the output reserve."""
        assert constant_product.get_input_price(10**40, 1000, 1000) < 1000

    def test_fee_stays_in_pool(self):
        """Output is strictly below the fee-free constant-product output."""
        x, r_in, r_out = 10**6, 10**9, 10**9
        fee_free = (x * r_out) // (r_in + x)
        assert constant_product.get_input_price(x, r_in, r_out) < fee_free


class TestOutputPrice:
    """Tests for exact-output pricing."""

    def test_matches_formula(self):
        out, r_in, r_out = 9066, ONE, 100_000
        expected = (r_in * out * 1000) // ((r_out - out) * 997) + 1
        assert constant_product.get_output_price(out, r_in, r_out) == expected

    def test_round_trip_covers_output(self):
        """Paying the exact-output price buys at least the requested output."""
        r_in, r_out = 100 * ONE, 250_000 * 10**6
        desired = 2467 * 10**6
        required = constant_product.get_output_price(desired, r_in, r_out)
        assert constant_product.get_input_price(required, r_in, r_out) >= desired

    def test_output_at_reserve_raises(self):
        with pytest.raises(InsufficientLiquidity):
            constant_product.get_output_price(1000, 10**18, 1000)
        with pytest.raises(InsufficientLiquidity):
            constant_product.get_output_price(1001, 10**18, 1000)

    def test_zero_output(self):
        assert constant_product.get_output_price(0, 100, 100) == 0


class TestLiquidityMath:
    """Tests for deposit, share and withdrawal calculations."""

    def test_deposit_required_rounds_up(self):
        # 2 * 10 / 3 = 6.67 -> 7
        assert constant_product.deposit_required(2, 3, 10) == 7

    def test_shares_for_deposit_rounds_down(self):
        # 2 * 10 / 3 = 6.67 -> 6
        assert constant_product.shares_for_deposit(2, 10, 3) == 6

    def test_exact_ratio_has_no_rounding(self):
        assert constant_product.deposit_required(ONE, ONE, 100_000) == 100_000
        assert constant_product.shares_for_deposit(ONE, ONE, ONE) == ONE

    def test_withdrawal_is_proportional(self):
        assert constant_product.withdrawal(ONE // 2, ONE, ONE, 100_000) == Withdrawal(
            native_out=ONE // 2, asset_out=50_000
        )

    def test_withdrawal_rounds_down(self):
        assert constant_product.withdrawal(1, 3, 10, 10) == Withdrawal(3, 3)

    def test_full_withdrawal_drains(self):
        assert constant_product.withdrawal(7, 7, 123, 456) == Withdrawal(123, 456)


class TestConfiguredPricing:
    """Tests for non-default fee and rounding configuration."""

    def test_custom_fee(self):
        pricing = ConstantProduct(ExchangeConfig(fee_numerator=995, fee_denominator=1000))
        x, r_in, r_out = 10**6, 10**9, 10**9
        assert pricing.get_input_price(x, r_in, r_out) == (x * 995 * r_out) // (
            r_in * 1000 + x * 995
        )

    def test_fee_free(self):
        pricing = ConstantProduct(ExchangeConfig(fee_numerator=1000, fee_denominator=1000))
        assert pricing.get_input_price(100, 1000, 1000) == (100 * 1000) // 1100

    def test_rounding_flipped(self):
        pricing = ConstantProduct(
            ExchangeConfig(deposit_rounding=Rounding.FLOOR, share_rounding=Rounding.CEIL)
        )
        assert pricing.deposit_required(2, 3, 10) == 6
        assert pricing.shares_for_deposit(2, 10, 3) == 7
