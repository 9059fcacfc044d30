"""Process-wide exchange state.

A Deployment bundles everything one running exchange needs: the runtime
(clock, native ledger, transaction boundary), the registry, and the assets
issued on it. There is no hidden global: the HTTP layer asks
``get_default_deployment()`` for an explicitly created instance, and tests
replace it with ``set_default_deployment()`` or build their own.
"""

from __future__ import annotations

import threading

import structlog

from exchange.addresses import derive_address
from exchange.config import DEFAULT_EXCHANGE_CONFIG, ExchangeConfig, load_config
from exchange.ledger.token import Token
from exchange.models.types import normalize_address
from exchange.pools.registry import ExchangeRegistry
from exchange.runtime import Runtime

logger = structlog.get_logger()

# Account that deploys the registry and issues assets
DEFAULT_DEPLOYER = "0x00000000000000000000000000000000000de910"


class Deployment:
    """Runtime, registry and issued assets of one exchange instance.

    Args:
        runtime: Runtime to deploy into. A fresh one on the system clock if None.
        config: Fee and rounding configuration for every pool
        deployer: Account the registry and asset addresses derive from
    """

    def __init__(
        self,
        runtime: Runtime | None = None,
        config: ExchangeConfig = DEFAULT_EXCHANGE_CONFIG,
        deployer: str = DEFAULT_DEPLOYER,
    ) -> None:
        self.runtime = runtime if runtime is not None else Runtime()
        self.config = config
        self.deployer = normalize_address(deployer, validate=True)
        self._nonce = 0
        self._lock = threading.Lock()
        self._assets: dict[str, Token] = {}
        self.registry = ExchangeRegistry(self.runtime, self._next_address(), config)
        logger.info("registry_deployed", registry=self.registry.address, deployer=self.deployer)

    def _next_address(self) -> str:
        with self._lock:
            self._nonce += 1
            return derive_address(self.deployer, self._nonce)

    def issue_asset(
        self,
        symbol: str,
        owner: str,
        supply: int = 0,
        decimals: int = 18,
    ) -> Token:
        """Issue a new asset and make it tradable on this deployment.

        Args:
            symbol: Ticker of the asset
            owner: Account receiving the initial supply
            supply: Initial supply minted to owner
            decimals: Display decimals

        Returns:
            The asset ledger
        """
        token = Token(self._next_address(), symbol, decimals=decimals, owner=owner)
        if supply:
            token.mint(owner, supply)
        self.runtime.register_asset(token.address, token)
        with self._lock:
            self._assets[token.address] = token
        logger.info("asset_issued", asset=token.address, symbol=symbol, owner=owner, supply=supply)
        return token

    def get_asset(self, address: str) -> Token | None:
        return self._assets.get(normalize_address(address))

    def assets(self) -> list[Token]:
        return list(self._assets.values())

    def fund(self, account: str, amount: int) -> int:
        """Credit ``amount`` native currency to ``account``.

        Returns:
            The account's new native balance
        """
        with self.runtime.atomic():
            self.runtime.native.credit(account, amount)
            return self.runtime.native.balance_of(account)


_default_deployment: Deployment | None = None
_default_lock = threading.Lock()


def _create_default_deployment() -> Deployment:
    """Create the default deployment from environment configuration."""
    config = load_config()
    logger.info(
        "default_deployment_created",
        fee_numerator=config.fee_numerator,
        fee_denominator=config.fee_denominator,
        deposit_rounding=config.deposit_rounding.value,
        share_rounding=config.share_rounding.value,
    )
    return Deployment(config=config)


def get_default_deployment() -> Deployment:
    """Return the process-wide deployment, creating it on first use."""
    global _default_deployment
    with _default_lock:
        if _default_deployment is None:
            _default_deployment = _create_default_deployment()
        return _default_deployment


def set_default_deployment(deployment: Deployment | None) -> None:
    """Replace the process-wide deployment (None resets it)."""
    global _default_deployment
    with _default_lock:
        _default_deployment = deployment
