"""Native-currency/asset liquidity pool.

A LiquidityPool is the exchange for exactly one asset. It holds a native
reserve (tracked here) and an asset reserve (the pool account's balance on
the asset ledger, always read fresh), issues liquidity shares, and prices
every trade with the constant-product formula.

Every mutator runs inside ``Runtime.atomic()`` and holds the pool's
reentrancy guard, so a call either completes or leaves no trace, and a
transfer hook cannot re-enter the pool while its reserves are in flux.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from exchange.amm.pricing import ConstantProduct
from exchange.config import DEFAULT_EXCHANGE_CONFIG, ExchangeConfig
from exchange.errors import (
    ExcessiveInputAmount,
    InsufficientLiquidityMinted,
    InsufficientOutputAmount,
    InsufficientShares,
    InvalidAmount,
    InvalidAsset,
    NoExchangeForAsset,
    NotFunded,
    TransferFailed,
)
from exchange.models.types import normalize_address
from exchange.pools.guard import ReentrancyGuard
from exchange.pools.shares import ShareLedger, ShareSnapshot

if TYPE_CHECKING:
    from exchange.ledger.base import AssetLedger
    from exchange.pools.registry import ExchangeRegistry
    from exchange.runtime import Runtime

logger = structlog.get_logger()


@dataclass(frozen=True)
class PoolState:
    """Point-in-time view of a pool's reserves and share supply."""

    address: str
    asset: str
    native_reserve: int
    asset_reserve: int
    total_shares: int

    @property
    def is_funded(self) -> bool:
        return self.total_shares > 0

    @property
    def product(self) -> int:
        """Constant-product invariant k = native_reserve * asset_reserve."""
        return self.native_reserve * self.asset_reserve


@dataclass(frozen=True)
class PoolSnapshot:
    native_reserve: int
    shares: ShareSnapshot


class LiquidityPool:
    """Constant-product exchange between native currency and one asset.

    Args:
        address: The pool's account on both ledgers
        asset: Address of the traded asset
        ledger: Ledger of the traded asset
        registry: Registry that created the pool (resolves the second leg
            of token-to-token swaps)
        runtime: Clock, native ledger and transaction boundary
        config: Fee and rounding configuration
    """

    def __init__(
        self,
        address: str,
        asset: str,
        ledger: AssetLedger,
        registry: ExchangeRegistry,
        runtime: Runtime,
        config: ExchangeConfig = DEFAULT_EXCHANGE_CONFIG,
    ) -> None:
        self.address = normalize_address(address, validate=True)
        self.asset = normalize_address(asset, validate=True)
        self.config = config
        self._ledger = ledger
        self._registry = registry
        self._runtime = runtime
        self._pricing = ConstantProduct(config)
        self._native_reserve = 0
        self._shares = ShareLedger()
        self._guard = ReentrancyGuard(f"pool {self.address}")

    def __repr__(self) -> str:
        return f"LiquidityPool(asset={self.asset}, address={self.address})"

    # --- Reserves and state ---

    @property
    def native_reserve(self) -> int:
        return self._native_reserve

    @property
    def asset_reserve(self) -> int:
        return self._ledger.balance_of(self.address)

    @property
    def total_shares(self) -> int:
        return self._shares.total_supply

    @property
    def is_funded(self) -> bool:
        return self._shares.total_supply > 0

    def state(self) -> PoolState:
        return PoolState(
            address=self.address,
            asset=self.asset,
            native_reserve=self._native_reserve,
            asset_reserve=self.asset_reserve,
            total_shares=self._shares.total_supply,
        )

    def snapshot(self) -> PoolSnapshot:
        return PoolSnapshot(self._native_reserve, self._shares.snapshot())

    def restore(self, snapshot: PoolSnapshot) -> None:
        self._native_reserve = snapshot.native_reserve
        self._shares.restore(snapshot.shares)

    # --- Liquidity ---

    def add_liquidity(
        self,
        min_shares: int,
        max_asset_in: int,
        deadline: int,
        *,
        sender: str,
        value: int,
    ) -> int:
        """Deposit ``value`` native currency plus the matching asset amount.

        The first deposit into an empty pool takes ``max_asset_in`` verbatim
        and so sets the price; ``value`` becomes the initial share supply.
        Later deposits must match the current reserve ratio.

        Args:
            min_shares: Minimum shares to mint (must be > 0)
            max_asset_in: Maximum asset amount to deposit
            deadline: Latest acceptable execution time (Unix seconds)
            sender: Depositing account (must have approved the pool)
            value: Native amount attached to the call

        Returns:
            Shares minted to ``sender``

        Raises:
            Expired, InvalidAmount, ExcessiveInputAmount,
            InsufficientLiquidityMinted, or a ledger error
        """
        sender = normalize_address(sender)
        with self._mutation():
            self._runtime.check_deadline(deadline)
            if value <= 0 or max_asset_in <= 0 or min_shares <= 0:
                raise InvalidAmount(
                    "Deposit requires value, max_asset_in and min_shares > 0, "
                    f"got {value}, {max_asset_in}, {min_shares}"
                )

            total_shares = self._shares.total_supply
            if total_shares > 0:
                native_reserve = self._native_reserve
                asset_in = self._pricing.deposit_required(value, native_reserve, self.asset_reserve)
                if asset_in > max_asset_in:
                    raise ExcessiveInputAmount(
                        f"Deposit requires {asset_in} asset, max is {max_asset_in}"
                    )
                shares_minted = self._pricing.shares_for_deposit(value, total_shares, native_reserve)
            else:
                asset_in = max_asset_in
                shares_minted = value

            if shares_minted < min_shares:
                raise InsufficientLiquidityMinted(
                    f"Deposit mints {shares_minted} shares, min is {min_shares}"
                )

            self._receive_native(sender, value)
            self._native_reserve += value
            self._shares.mint(sender, shares_minted)
            self._pull_asset(sender, asset_in)

            logger.info(
                "add_liquidity",
                pool=self.address,
                provider=sender,
                native_amount=value,
                asset_amount=asset_in,
                shares_minted=shares_minted,
                initial=total_shares == 0,
            )
            return shares_minted

    def remove_liquidity(
        self,
        shares_in: int,
        min_native_out: int,
        min_asset_out: int,
        deadline: int,
        *,
        sender: str,
    ) -> tuple[int, int]:
        """Burn ``shares_in`` for a proportional slice of both reserves.

        Burning the whole supply returns the pool to the empty state, so the
        next deposit sets a new price.

        Returns:
            (native_out, asset_out) paid to ``sender``

        Raises:
            Expired, InvalidAmount, NotFunded, InsufficientShares,
            InsufficientOutputAmount
        """
        sender = normalize_address(sender)
        with self._mutation():
            self._runtime.check_deadline(deadline)
            if shares_in <= 0:
                raise InvalidAmount(f"shares_in must be > 0, got {shares_in}")
            self._require_funded()
            balance = self._shares.balance_of(sender)
            if balance < shares_in:
                raise InsufficientShares(f"Share balance {balance} of {sender} is below {shares_in}")

            withdrawal = self._pricing.withdrawal(
                shares_in,
                self._shares.total_supply,
                self._native_reserve,
                self.asset_reserve,
            )
            if withdrawal.native_out < min_native_out or withdrawal.asset_out < min_asset_out:
                raise InsufficientOutputAmount(
                    f"Withdrawal pays ({withdrawal.native_out}, {withdrawal.asset_out}), "
                    f"minimum is ({min_native_out}, {min_asset_out})"
                )

            self._shares.burn(sender, shares_in)
            self._native_reserve -= withdrawal.native_out
            self._send_native(sender, withdrawal.native_out)
            self._send_asset(sender, withdrawal.asset_out)

            logger.info(
                "remove_liquidity",
                pool=self.address,
                provider=sender,
                native_amount=withdrawal.native_out,
                asset_amount=withdrawal.asset_out,
                shares_burned=shares_in,
                emptied=self._shares.total_supply == 0,
            )
            return withdrawal.native_out, withdrawal.asset_out

    # --- Exact-input swaps ---

    def eth_to_token_swap_input(
        self,
        min_tokens: int,
        deadline: int,
        *,
        sender: str,
        value: int,
        recipient: str | None = None,
    ) -> int:
        """Sell exactly ``value`` native currency for the asset.

        Returns:
            Asset amount paid to ``recipient`` (defaults to ``sender``)
        """
        sender = normalize_address(sender)
        recipient = normalize_address(recipient) if recipient is not None else sender
        with self._mutation():
            self._runtime.check_deadline(deadline)
            if value <= 0 or min_tokens <= 0:
                raise InvalidAmount(f"value and min_tokens must be > 0, got {value}, {min_tokens}")
            self._require_funded()

            tokens_bought = self._pricing.get_input_price(
                value, self._native_reserve, self.asset_reserve
            )
            if tokens_bought < min_tokens:
                raise InsufficientOutputAmount(
                    f"Swap buys {tokens_bought} tokens, minimum is {min_tokens}"
                )

            self._receive_native(sender, value)
            self._native_reserve += value
            self._send_asset(recipient, tokens_bought)

            logger.info(
                "token_purchase",
                pool=self.address,
                buyer=sender,
                recipient=recipient,
                eth_sold=value,
                tokens_bought=tokens_bought,
            )
            return tokens_bought

    def token_to_eth_swap_input(
        self,
        tokens_sold: int,
        min_eth: int,
        deadline: int,
        *,
        sender: str,
        recipient: str | None = None,
    ) -> int:
        """Sell exactly ``tokens_sold`` of the asset for native currency.

        Returns:
            Native amount paid to ``recipient`` (defaults to ``sender``)
        """
        sender = normalize_address(sender)
        recipient = normalize_address(recipient) if recipient is not None else sender
        with self._mutation():
            self._runtime.check_deadline(deadline)
            if tokens_sold <= 0 or min_eth <= 0:
                raise InvalidAmount(
                    f"tokens_sold and min_eth must be > 0, got {tokens_sold}, {min_eth}"
                )
            self._require_funded()

            eth_bought = self._sell_asset(sender, tokens_sold, min_eth)
            self._send_native(recipient, eth_bought)

            logger.info(
                "eth_purchase",
                pool=self.address,
                buyer=sender,
                recipient=recipient,
                tokens_sold=tokens_sold,
                eth_bought=eth_bought,
            )
            return eth_bought

    def token_to_token_swap_input(
        self,
        tokens_sold: int,
        min_tokens_bought: int,
        min_eth_bought: int,
        deadline: int,
        other_asset: str,
        *,
        sender: str,
        recipient: str | None = None,
    ) -> int:
        """Sell ``tokens_sold`` of this asset for ``other_asset`` via native currency.

        The first leg sells into this pool (floor ``min_eth_bought``); the
        native proceeds are then spent on the pool registered for
        ``other_asset`` (floor ``min_tokens_bought``). A failure in either
        leg undoes both.

        Returns:
            Amount of ``other_asset`` paid to ``recipient``

        Raises:
            NoExchangeForAsset: If ``other_asset`` has no pool
            InvalidAsset: If ``other_asset`` is this pool's asset
        """
        sender = normalize_address(sender)
        recipient = normalize_address(recipient) if recipient is not None else sender
        with self._mutation():
            self._runtime.check_deadline(deadline)
            if tokens_sold <= 0 or min_tokens_bought <= 0 or min_eth_bought <= 0:
                raise InvalidAmount(
                    "tokens_sold, min_tokens_bought and min_eth_bought must be > 0, got "
                    f"{tokens_sold}, {min_tokens_bought}, {min_eth_bought}"
                )
            target = self._target_pool(other_asset)
            self._require_funded()

            eth_bought = self._sell_asset(sender, tokens_sold, min_eth_bought)
            tokens_bought = target.eth_to_token_swap_input(
                min_tokens_bought,
                deadline,
                sender=self.address,
                value=eth_bought,
                recipient=recipient,
            )

            logger.info(
                "eth_purchase",
                pool=self.address,
                buyer=sender,
                recipient=recipient,
                tokens_sold=tokens_sold,
                eth_bought=eth_bought,
                routed_to=target.asset,
                tokens_bought=tokens_bought,
            )
            return tokens_bought

    # --- Exact-output swaps ---

    def eth_to_token_swap_output(
        self,
        tokens_bought: int,
        deadline: int,
        *,
        sender: str,
        value: int,
        recipient: str | None = None,
    ) -> int:
        """Buy exactly ``tokens_bought`` of the asset, spending at most ``value``.

        The unspent part of ``value`` is refunded to ``sender``.

        Returns:
            Native amount actually sold
        """
        sender = normalize_address(sender)
        recipient = normalize_address(recipient) if recipient is not None else sender
        with self._mutation():
            self._runtime.check_deadline(deadline)
            if tokens_bought <= 0 or value <= 0:
                raise InvalidAmount(
                    f"tokens_bought and value must be > 0, got {tokens_bought}, {value}"
                )
            self._require_funded()

            eth_sold = self._pricing.get_output_price(
                tokens_bought, self._native_reserve, self.asset_reserve
            )
            if eth_sold > value:
                raise ExcessiveInputAmount(f"Swap costs {eth_sold}, attached value is {value}")

            self._receive_native(sender, value)
            self._native_reserve += eth_sold
            self._send_native(sender, value - eth_sold)
            self._send_asset(recipient, tokens_bought)

            logger.info(
                "token_purchase",
                pool=self.address,
                buyer=sender,
                recipient=recipient,
                eth_sold=eth_sold,
                tokens_bought=tokens_bought,
                refund=value - eth_sold,
            )
            return eth_sold

    def token_to_eth_swap_output(
        self,
        eth_bought: int,
        max_tokens: int,
        deadline: int,
        *,
        sender: str,
        recipient: str | None = None,
    ) -> int:
        """Buy exactly ``eth_bought`` native currency, selling at most ``max_tokens``.

        Returns:
            Asset amount actually sold
        """
        sender = normalize_address(sender)
        recipient = normalize_address(recipient) if recipient is not None else sender
        with self._mutation():
            self._runtime.check_deadline(deadline)
            if eth_bought <= 0 or max_tokens <= 0:
                raise InvalidAmount(
                    f"eth_bought and max_tokens must be > 0, got {eth_bought}, {max_tokens}"
                )
            self._require_funded()

            tokens_sold = self._pricing.get_output_price(
                eth_bought, self.asset_reserve, self._native_reserve
            )
            if tokens_sold > max_tokens:
                raise ExcessiveInputAmount(f"Swap costs {tokens_sold} tokens, max is {max_tokens}")

            self._pull_asset(sender, tokens_sold)
            self._native_reserve -= eth_bought
            self._send_native(recipient, eth_bought)

            logger.info(
                "eth_purchase",
                pool=self.address,
                buyer=sender,
                recipient=recipient,
                tokens_sold=tokens_sold,
                eth_bought=eth_bought,
            )
            return tokens_sold

    def token_to_token_swap_output(
        self,
        tokens_bought: int,
        max_tokens_sold: int,
        max_eth_sold: int,
        deadline: int,
        other_asset: str,
        *,
        sender: str,
        recipient: str | None = None,
    ) -> int:
        """Buy exactly ``tokens_bought`` of ``other_asset``, paying with this asset.

        Returns:
            Amount of this pool's asset actually sold
        """
        sender = normalize_address(sender)
        recipient = normalize_address(recipient) if recipient is not None else sender
        with self._mutation():
            self._runtime.check_deadline(deadline)
            if tokens_bought <= 0 or max_tokens_sold <= 0 or max_eth_sold <= 0:
                raise InvalidAmount(
                    "tokens_bought, max_tokens_sold and max_eth_sold must be > 0, got "
                    f"{tokens_bought}, {max_tokens_sold}, {max_eth_sold}"
                )
            target = self._target_pool(other_asset)
            self._require_funded()

            eth_bought = target.get_eth_to_token_output_price(tokens_bought)
            tokens_sold = self._pricing.get_output_price(
                eth_bought, self.asset_reserve, self._native_reserve
            )
            if tokens_sold > max_tokens_sold or eth_bought > max_eth_sold:
                raise ExcessiveInputAmount(
                    f"Route costs ({tokens_sold} tokens, {eth_bought} native), "
                    f"max is ({max_tokens_sold}, {max_eth_sold})"
                )

            self._pull_asset(sender, tokens_sold)
            self._native_reserve -= eth_bought
            eth_spent = target.eth_to_token_swap_output(
                tokens_bought,
                deadline,
                sender=self.address,
                value=eth_bought,
                recipient=recipient,
            )
            # The target refunds any unspent native to this pool's account
            self._native_reserve += eth_bought - eth_spent

            logger.info(
                "eth_purchase",
                pool=self.address,
                buyer=sender,
                recipient=recipient,
                tokens_sold=tokens_sold,
                eth_bought=eth_spent,
                routed_to=target.asset,
                tokens_bought=tokens_bought,
            )
            return tokens_sold

    # --- Price quotes ---

    def get_eth_to_token_input_price(self, eth_sold: int) -> int:
        """Asset bought by selling exactly ``eth_sold``."""
        self._require_quote_amount(eth_sold)
        return self._pricing.get_input_price(eth_sold, self._native_reserve, self.asset_reserve)

    def get_eth_to_token_output_price(self, tokens_bought: int) -> int:
        """Native amount needed to buy exactly ``tokens_bought``."""
        self._require_quote_amount(tokens_bought)
        return self._pricing.get_output_price(tokens_bought, self._native_reserve, self.asset_reserve)

    def get_token_to_eth_input_price(self, tokens_sold: int) -> int:
        """Native amount bought by selling exactly ``tokens_sold``."""
        self._require_quote_amount(tokens_sold)
        return self._pricing.get_input_price(tokens_sold, self.asset_reserve, self._native_reserve)

    def get_token_to_eth_output_price(self, eth_bought: int) -> int:
        """Asset amount needed to buy exactly ``eth_bought``."""
        self._require_quote_amount(eth_bought)
        return self._pricing.get_output_price(eth_bought, self.asset_reserve, self._native_reserve)

    # --- Share token ---

    @property
    def name(self) -> str:
        return self.config.share_name

    @property
    def symbol(self) -> str:
        return self.config.share_symbol

    @property
    def decimals(self) -> int:
        return self.config.share_decimals

    def total_supply(self) -> int:
        return self._shares.total_supply

    def balance_of(self, account: str) -> int:
        return self._shares.balance_of(account)

    def allowance(self, owner: str, spender: str) -> int:
        return self._shares.allowance(owner, spender)

    def transfer(self, to: str, amount: int, *, sender: str) -> bool:
        with self._mutation():
            self._shares.transfer(sender, to, amount)
        logger.debug("share_transfer", pool=self.address, sender=sender, to=to, amount=amount)
        return True

    def transfer_from(self, owner: str, to: str, amount: int, *, sender: str) -> bool:
        with self._mutation():
            self._shares.spend_allowance(owner, sender, amount)
            self._shares.transfer(owner, to, amount)
        logger.debug("share_transfer", pool=self.address, sender=owner, to=to, amount=amount)
        return True

    def approve(self, spender: str, amount: int, *, sender: str) -> bool:
        with self._mutation():
            self._shares.approve(sender, spender, amount)
        logger.debug("share_approval", pool=self.address, owner=sender, spender=spender, amount=amount)
        return True

    # --- Internals ---

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._runtime.atomic(), self._guard:
            self._runtime.journal(self)
            yield

    def _require_funded(self) -> None:
        if self._shares.total_supply == 0:
            raise NotFunded(f"Pool {self.address} has no liquidity")

    def _require_quote_amount(self, amount: int) -> None:
        if amount <= 0:
            raise InvalidAmount(f"Quote amount must be > 0, got {amount}")
        self._require_funded()

    def _target_pool(self, other_asset: str) -> LiquidityPool:
        target = self._registry.get_exchange(other_asset)
        if target is None:
            raise NoExchangeForAsset(f"No exchange for asset {other_asset}")
        if target is self:
            raise InvalidAsset(f"Cannot route {other_asset} through its own exchange")
        return target

    def _sell_asset(self, seller: str, tokens_sold: int, min_eth: int) -> int:
        """Pull ``tokens_sold`` from ``seller`` and book the native proceeds.

        The asset reserve is read after the pull, since the transfer may
        have run untrusted code.
        """
        self._pull_asset(seller, tokens_sold)
        asset_reserve = self.asset_reserve - tokens_sold
        eth_bought = self._pricing.get_input_price(tokens_sold, asset_reserve, self._native_reserve)
        if eth_bought < min_eth:
            raise InsufficientOutputAmount(f"Swap buys {eth_bought} native, minimum is {min_eth}")
        self._native_reserve -= eth_bought
        return eth_bought

    def _receive_native(self, sender: str, amount: int) -> None:
        self._runtime.native.transfer(sender, self.address, amount)

    def _send_native(self, to: str, amount: int) -> None:
        if amount > 0:
            self._runtime.native.transfer(self.address, to, amount)

    def _send_asset(self, to: str, amount: int) -> None:
        if amount > 0 and not self._ledger.transfer(self.address, to, amount):
            raise TransferFailed(f"Asset transfer of {amount} to {to} failed")

    def _pull_asset(self, owner: str, amount: int) -> None:
        if not self._ledger.transfer_from(self.address, owner, self.address, amount):
            raise TransferFailed(f"Asset transfer of {amount} from {owner} failed")
