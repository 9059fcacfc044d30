"""Tests for adding and removing liquidity."""

import pytest

from exchange.errors import (
    ExcessiveInputAmount,
    Expired,
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientLiquidityMinted,
    InsufficientOutputAmount,
    InsufficientShares,
    InvalidAmount,
    NotFunded,
)
from tests.helpers import ALICE, BOB, DEADLINE, INITIAL_SUPPLY, ONE, seed_pool


def pool_native_balance(deployment, pool):
    return deployment.runtime.native.balance_of(pool.address)


class TestInitialDeposit:
    """Tests for the first deposit into an empty pool."""

    def test_sets_price_and_mints_value(self, deployment, token, pool):
        deployment.fund(BOB, ONE)
        token.approve(BOB, pool.address, 100_000)

        shares = pool.add_liquidity(1, 100_000, DEADLINE, sender=BOB, value=ONE)

        assert shares == ONE
        assert pool.native_reserve == ONE
        assert pool.asset_reserve == 100_000
        assert pool.total_shares == ONE
        assert pool.balance_of(BOB) == ONE
        assert pool.is_funded
        assert token.balance_of(BOB) == INITIAL_SUPPLY - 100_000
        assert deployment.runtime.native.balance_of(BOB) == 0
        assert pool_native_balance(deployment, pool) == ONE

    def test_min_shares_enforced(self, deployment, token, pool):
        deployment.fund(BOB, ONE)
        token.approve(BOB, pool.address, 100_000)
        with pytest.raises(InsufficientLiquidityMinted):
            pool.add_liquidity(ONE + 1, 100_000, DEADLINE, sender=BOB, value=ONE)
        assert not pool.is_funded

    def test_donation_is_absorbed_by_first_provider(self, deployment, token, pool):
        """Asset sent to an empty pool joins the reserve of the first deposit."""
        token.transfer(BOB, pool.address, 500)
        seed_pool(deployment, token, ALICE, native=ONE, asset=100_000)
        assert pool.asset_reserve == 100_500
        assert pool.balance_of(ALICE) == ONE

    @pytest.mark.parametrize(
        "min_shares,value,max_asset_in", [(1, 0, 100), (1, ONE, 0), (0, ONE, 100)]
    )
    def test_zero_amounts_rejected(self, deployment, token, pool, min_shares, value, max_asset_in):
        deployment.fund(BOB, ONE)
        token.approve(BOB, pool.address, 100)
        with pytest.raises(InvalidAmount):
            pool.add_liquidity(min_shares, max_asset_in, DEADLINE, sender=BOB, value=value)
        assert not pool.is_funded


class TestSubsequentDeposit:
    """Tests for deposits into a funded pool."""

    def test_deposit_at_current_ratio(self, deployment, funded_pool):
        shares = funded_pool.add_liquidity(1, 100_000, DEADLINE, sender=BOB, value=ONE)
        assert shares == ONE
        assert funded_pool.native_reserve == 2 * ONE
        assert funded_pool.asset_reserve == 200_000
        assert funded_pool.total_shares == 2 * ONE

    def test_excessive_input_rejected(self, funded_pool):
        with pytest.raises(ExcessiveInputAmount):
            funded_pool.add_liquidity(1, 99_999, DEADLINE, sender=BOB, value=ONE)

    def test_rounding_favors_pool(self, deployment, token):
        """Required deposit rounds up, minted shares round down."""
        pool = seed_pool(deployment, token, ALICE, native=3, asset=10)
        deployment.fund(BOB, 2)
        token.approve(BOB, pool.address, 7)

        with pytest.raises(ExcessiveInputAmount):
            pool.add_liquidity(1, 6, DEADLINE, sender=BOB, value=2)

        shares = pool.add_liquidity(1, 7, DEADLINE, sender=BOB, value=2)
        assert shares == 2
        assert pool.native_reserve == 5
        assert pool.asset_reserve == 17

    def test_min_shares_enforced(self, funded_pool):
        with pytest.raises(InsufficientLiquidityMinted):
            funded_pool.add_liquidity(ONE + 1, 100_000, DEADLINE, sender=BOB, value=ONE)

    def test_dust_deposit_cannot_mint_zero_shares(self, deployment, funded_pool):
        """After a trade moves the ratio, a 1-wei deposit rounds to zero shares."""
        funded_pool.eth_to_token_swap_input(1, DEADLINE, sender=BOB, value=ONE // 10)
        state = funded_pool.state()
        native_before = deployment.runtime.native.balance_of(BOB)

        with pytest.raises(InvalidAmount):
            funded_pool.add_liquidity(0, 100, DEADLINE, sender=BOB, value=1)
        with pytest.raises(InsufficientLiquidityMinted):
            funded_pool.add_liquidity(1, 100, DEADLINE, sender=BOB, value=1)

        assert funded_pool.state() == state
        assert funded_pool.balance_of(BOB) == 0
        assert deployment.runtime.native.balance_of(BOB) == native_before


class TestDepositFailures:
    """Failed deposits leave no trace."""

    def test_expired(self, clock, funded_pool):
        clock.advance(301)
        with pytest.raises(Expired):
            funded_pool.add_liquidity(1, 100_000, DEADLINE, sender=BOB, value=ONE)

    def test_insufficient_native(self, deployment, funded_pool):
        state = funded_pool.state()
        with pytest.raises(InsufficientBalance):
            funded_pool.add_liquidity(1, 2 * 10**6, DEADLINE, sender=BOB, value=11 * ONE)
        assert funded_pool.state() == state

    def test_missing_approval_rolls_back_native(self, deployment, token, funded_pool):
        token.approve(BOB, funded_pool.address, 0)
        state = funded_pool.state()

        with pytest.raises(InsufficientAllowance):
            funded_pool.add_liquidity(1, 100_000, DEADLINE, sender=BOB, value=ONE)

        assert funded_pool.state() == state
        assert funded_pool.balance_of(BOB) == 0
        assert deployment.runtime.native.balance_of(BOB) == 10 * ONE
        assert pool_native_balance(deployment, funded_pool) == ONE


class TestRemoveLiquidity:
    """Tests for burning shares."""

    def test_proportional_withdrawal(self, deployment, token, funded_pool):
        native_out, asset_out = funded_pool.remove_liquidity(
            ONE // 2, 1, 1, DEADLINE, sender=ALICE
        )
        assert (native_out, asset_out) == (ONE // 2, 50_000)
        assert funded_pool.native_reserve == ONE // 2
        assert funded_pool.asset_reserve == 50_000
        assert funded_pool.balance_of(ALICE) == ONE // 2
        assert deployment.runtime.native.balance_of(ALICE) == ONE // 2
        assert token.balance_of(ALICE) == INITIAL_SUPPLY + 50_000

    def test_full_withdrawal_empties_pool(self, deployment, token, funded_pool):
        funded_pool.remove_liquidity(ONE, 1, 1, DEADLINE, sender=ALICE)
        assert funded_pool.total_shares == 0
        assert funded_pool.native_reserve == 0
        assert funded_pool.asset_reserve == 0
        assert not funded_pool.is_funded

        # Next deposit sets a new price
        seed_pool(deployment, token, ALICE, native=2 * ONE, asset=50)
        assert funded_pool.total_shares == 2 * ONE
        assert funded_pool.asset_reserve == 50

    def test_zero_shares_rejected(self, funded_pool):
        with pytest.raises(InvalidAmount):
            funded_pool.remove_liquidity(0, 1, 1, DEADLINE, sender=ALICE)

    def test_empty_pool(self, pool):
        with pytest.raises(NotFunded):
            pool.remove_liquidity(1, 1, 1, DEADLINE, sender=ALICE)

    def test_insufficient_shares(self, funded_pool):
        with pytest.raises(InsufficientShares):
            funded_pool.remove_liquidity(1, 1, 1, DEADLINE, sender=BOB)
        with pytest.raises(InsufficientShares):
            funded_pool.remove_liquidity(ONE + 1, 1, 1, DEADLINE, sender=ALICE)

    @pytest.mark.parametrize("min_native,min_asset", [(ONE // 2 + 1, 1), (1, 50_001)])
    def test_minimums_enforced(self, funded_pool, min_native, min_asset):
        state = funded_pool.state()
        with pytest.raises(InsufficientOutputAmount):
            funded_pool.remove_liquidity(ONE // 2, min_native, min_asset, DEADLINE, sender=ALICE)
        assert funded_pool.state() == state
        assert funded_pool.balance_of(ALICE) == ONE

    def test_expired(self, clock, funded_pool):
        clock.advance(301)
        with pytest.raises(Expired):
            funded_pool.remove_liquidity(ONE, 1, 1, DEADLINE, sender=ALICE)
