"""Exchange registry: one liquidity pool per asset.

The registry is the factory for pools. It creates at most one pool per
asset, never replaces or removes one, and answers lookups in both
directions (asset -> pool, pool address -> asset).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import structlog

from exchange.addresses import derive_address
from exchange.config import DEFAULT_EXCHANGE_CONFIG, ExchangeConfig
from exchange.constants import NATIVE_ASSET, NULL_ADDRESS
from exchange.errors import AlreadyExists, InvalidAsset
from exchange.models.types import is_valid_address, normalize_address
from exchange.pools.pool import LiquidityPool
from exchange.runtime import Runtime

logger = structlog.get_logger()


@dataclass(frozen=True)
class RegistrySnapshot:
    pool_of: dict[str, LiquidityPool]
    asset_of: dict[str, str]
    assets: tuple[str, ...]


class ExchangeRegistry:
    """Registry of liquidity pools, keyed by asset.

    Args:
        runtime: Runtime shared with every pool this registry creates
        address: Account of the registry itself; pool addresses derive from it
        config: Fee and rounding configuration handed to new pools
    """

    def __init__(
        self,
        runtime: Runtime,
        address: str,
        config: ExchangeConfig = DEFAULT_EXCHANGE_CONFIG,
    ) -> None:
        self.address = normalize_address(address, validate=True)
        self.config = config
        self._runtime = runtime
        self._pool_of: dict[str, LiquidityPool] = {}
        # Reverse index, derived from _pool_of at creation time
        self._asset_of: dict[str, str] = {}
        # Assets in creation order; asset id n is _assets[n - 1]
        self._assets: list[str] = []

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, asset: object) -> bool:
        return isinstance(asset, str) and normalize_address(asset) in self._pool_of

    def create_exchange(self, asset: str) -> LiquidityPool:
        """Create the pool for ``asset``.

        The existence check and the registration run in one critical
        section, so concurrent calls for the same asset create exactly one
        pool.

        Args:
            asset: Address of the asset to pair against native currency

        Returns:
            The new pool

        Raises:
            InvalidAsset: If asset is not an address, is the native or null
                identity, or has no ledger in the runtime
            AlreadyExists: If a pool for asset already exists
        """
        if not isinstance(asset, str) or not is_valid_address(normalize_address(asset)):
            raise InvalidAsset(f"Not an asset address: {asset!r}")
        asset = normalize_address(asset)
        if asset == NATIVE_ASSET:
            raise InvalidAsset("The native currency cannot be paired against itself")
        if asset == NULL_ADDRESS:
            raise InvalidAsset("The null address is not an asset")

        with self._runtime.atomic():
            self._runtime.journal(self)
            ledger = self._runtime.get_asset(asset)
            if ledger is None:
                raise InvalidAsset(f"No ledger registered for asset {asset}")
            if asset in self._pool_of:
                raise AlreadyExists(
                    f"Exchange for {asset} already exists at {self._pool_of[asset].address}"
                )

            asset_id = len(self._assets) + 1
            pool = LiquidityPool(
                address=derive_address(self.address, asset_id),
                asset=asset,
                ledger=ledger,
                registry=self,
                runtime=self._runtime,
                config=self.config,
            )
            self._pool_of[asset] = pool
            self._asset_of[pool.address] = asset
            self._assets.append(asset)

        logger.info("new_exchange", asset=asset, exchange=pool.address, asset_id=asset_id)
        return pool

    def get_exchange(self, asset: str) -> LiquidityPool | None:
        """Get the pool for ``asset``, or None if there is none."""
        return self._pool_of.get(normalize_address(asset))

    def get_asset(self, exchange: str) -> str | None:
        """Get the asset traded by the pool at address ``exchange``."""
        return self._asset_of.get(normalize_address(exchange))

    def get_asset_with_id(self, asset_id: int) -> str | None:
        """Get the ``asset_id``-th registered asset (1-based, creation order)."""
        if 1 <= asset_id <= len(self._assets):
            return self._assets[asset_id - 1]
        return None

    @property
    def asset_count(self) -> int:
        return len(self._assets)

    def exchanges(self) -> Iterator[LiquidityPool]:
        """Iterate over pools in creation order."""
        for asset in list(self._assets):
            yield self._pool_of[asset]

    def snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(dict(self._pool_of), dict(self._asset_of), tuple(self._assets))

    def restore(self, snapshot: RegistrySnapshot) -> None:
        self._pool_of = dict(snapshot.pool_of)
        self._asset_of = dict(snapshot.asset_of)
        self._assets = list(snapshot.assets)
