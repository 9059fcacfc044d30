"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Accounts, time and common amounts
- factories: Clock, deployment and pool factory functions
"""

from tests.helpers.constants import (
    ALICE,
    BOB,
    CAROL,
    DEADLINE,
    INITIAL_SUPPLY,
    NOW,
    ONE,
    UNKNOWN_ASSET,
)
from tests.helpers.factories import FixedClock, make_deployment, seed_pool

__all__ = [
    # Constants
    "ALICE",
    "BOB",
    "CAROL",
    "UNKNOWN_ASSET",
    "NOW",
    "DEADLINE",
    "ONE",
    "INITIAL_SUPPLY",
    # Factories
    "FixedClock",
    "make_deployment",
    "seed_pool",
]
