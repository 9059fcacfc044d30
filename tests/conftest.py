"""Pytest configuration and fixtures."""

import pytest

from exchange.deployment import Deployment
from exchange.ledger.token import Token
from exchange.pools.pool import LiquidityPool
from tests.helpers import (
    ALICE,
    BOB,
    INITIAL_SUPPLY,
    ONE,
    FixedClock,
    make_deployment,
    seed_pool,
)


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at NOW; tests advance it explicitly."""
    return FixedClock()


@pytest.fixture
def deployment(clock: FixedClock) -> Deployment:
    """Fresh deployment on the fixed clock."""
    return make_deployment(clock)


@pytest.fixture
def token(deployment: Deployment) -> Token:
    """Asset with INITIAL_SUPPLY held by both ALICE and BOB."""
    token = deployment.issue_asset("TKN", owner=ALICE, supply=INITIAL_SUPPLY)
    token.mint(BOB, INITIAL_SUPPLY)
    return token


@pytest.fixture
def other_token(deployment: Deployment) -> Token:
    """Second asset, for token-to-token routes."""
    token = deployment.issue_asset("OTH", owner=ALICE, supply=INITIAL_SUPPLY)
    token.mint(BOB, INITIAL_SUPPLY)
    return token


@pytest.fixture
def pool(deployment: Deployment, token: Token) -> LiquidityPool:
    """Empty pool for ``token``."""
    return deployment.registry.create_exchange(token.address)


@pytest.fixture
def funded_pool(deployment: Deployment, token: Token, pool: LiquidityPool) -> LiquidityPool:
    """Pool seeded by ALICE with 1 native unit and 100,000 asset units.

    BOB holds 10 native units and has approved the pool for the whole
    BOB asset balance.
    """
    seed_pool(deployment, token, ALICE, native=ONE, asset=100_000)
    deployment.fund(BOB, 10 * ONE)
    token.approve(BOB, pool.address, INITIAL_SUPPLY)
    return pool


@pytest.fixture
def other_pool(deployment: Deployment, other_token: Token) -> LiquidityPool:
    """Pool for ``other_token`` seeded like ``funded_pool``."""
    return seed_pool(deployment, other_token, ALICE, native=ONE, asset=100_000)
