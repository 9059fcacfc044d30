"""Tests for ExchangeRegistry."""

import threading

import pytest

from exchange.addresses import derive_address
from exchange.constants import NATIVE_ASSET, NULL_ADDRESS
from exchange.errors import AlreadyExists, InvalidAsset
from exchange.pools import LiquidityPool
from tests.helpers import ALICE, UNKNOWN_ASSET


class TestCreateExchange:
    """Tests for pool creation."""

    def test_creates_empty_pool(self, deployment, token):
        pool = deployment.registry.create_exchange(token.address)
        assert isinstance(pool, LiquidityPool)
        assert pool.asset == token.address
        assert pool.native_reserve == 0
        assert pool.asset_reserve == 0
        assert pool.total_shares == 0
        assert not pool.is_funded

    def test_pool_address_is_derived(self, deployment, token):
        pool = deployment.registry.create_exchange(token.address)
        assert pool.address == derive_address(deployment.registry.address, 1)

    def test_duplicate_rejected(self, deployment, token):
        first = deployment.registry.create_exchange(token.address)
        with pytest.raises(AlreadyExists):
            deployment.registry.create_exchange(token.address)
        assert deployment.registry.get_exchange(token.address) is first
        assert deployment.registry.asset_count == 1

    def test_duplicate_detected_across_case(self, deployment, token):
        deployment.registry.create_exchange(token.address)
        with pytest.raises(AlreadyExists):
            deployment.registry.create_exchange(token.address.upper().replace("0X", "0x"))

    @pytest.mark.parametrize(
        "asset",
        [NATIVE_ASSET, NULL_ADDRESS, UNKNOWN_ASSET, "not-an-address", "0x1234", ""],
    )
    def test_invalid_asset_rejected(self, deployment, asset):
        with pytest.raises(InvalidAsset):
            deployment.registry.create_exchange(asset)
        assert deployment.registry.asset_count == 0

    def test_concurrent_creation_creates_one_pool(self, deployment, token):
        created = []
        rejected = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            try:
                created.append(deployment.registry.create_exchange(token.address))
            except AlreadyExists:
                rejected.append(True)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(created) == 1
        assert len(rejected) == 7
        assert deployment.registry.get_exchange(token.address) is created[0]


class TestLookups:
    """Tests for registry lookups in both directions."""

    def test_get_exchange_unknown(self, deployment, token):
        assert deployment.registry.get_exchange(token.address) is None
        assert deployment.registry.get_exchange(UNKNOWN_ASSET) is None

    def test_get_exchange_is_case_insensitive(self, deployment, token):
        pool = deployment.registry.create_exchange(token.address)
        assert deployment.registry.get_exchange(token.address.upper().replace("0X", "0x")) is pool

    def test_reverse_lookup(self, deployment, token):
        pool = deployment.registry.create_exchange(token.address)
        assert deployment.registry.get_asset(pool.address) == token.address
        assert deployment.registry.get_asset(token.address) is None

    def test_asset_ids_follow_creation_order(self, deployment, token, other_token):
        registry = deployment.registry
        first = registry.create_exchange(other_token.address)
        second = registry.create_exchange(token.address)

        assert registry.asset_count == 2
        assert len(registry) == 2
        assert registry.get_asset_with_id(1) == other_token.address
        assert registry.get_asset_with_id(2) == token.address
        assert registry.get_asset_with_id(0) is None
        assert registry.get_asset_with_id(3) is None
        assert list(registry.exchanges()) == [first, second]
        assert token.address in registry
        assert ALICE not in registry

    def test_pools_are_never_replaced(self, deployment, token, other_token):
        pool = deployment.registry.create_exchange(token.address)
        deployment.registry.create_exchange(other_token.address)
        assert deployment.registry.get_exchange(token.address) is pool


class TestRegistrySnapshot:
    def test_failed_section_undoes_creation(self, deployment, token):
        with pytest.raises(RuntimeError):
            with deployment.runtime.atomic():
                deployment.registry.create_exchange(token.address)
                raise RuntimeError("boom")
        assert deployment.registry.get_exchange(token.address) is None
        assert deployment.registry.asset_count == 0
