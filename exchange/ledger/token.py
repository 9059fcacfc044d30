"""In-memory fungible asset ledger."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from exchange.errors import InsufficientAllowance, InsufficientBalance, InvalidAmount
from exchange.ledger.base import Writer, standalone_write
from exchange.models.types import normalize_address

logger = structlog.get_logger()

# Called after every balance move as hook(sender, to, amount)
TransferHook = Callable[[str, str, int], None]


@dataclass(frozen=True)
class TokenSnapshot:
    balances: dict[str, int]
    allowances: dict[tuple[str, str], int]
    total_supply: int


class Token:
    """Fungible asset with balance, allowance and transfer-from semantics.

    Implements the AssetLedger protocol. Transfer hooks registered with
    ``add_transfer_hook`` run after the balances have moved, which is how
    tests model assets whose transfers call back into untrusted code.

    Once registered with a runtime, mint, approve and transfers run inside
    the runtime's write section.
    """

    def __init__(
        self,
        address: str,
        symbol: str,
        decimals: int = 18,
        owner: str | None = None,
    ) -> None:
        self.address = normalize_address(address, validate=True)
        self.symbol = symbol
        self.decimals = decimals
        self.owner = normalize_address(owner) if owner is not None else None
        self.total_supply = 0
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._hooks: list[TransferHook] = []
        self._write: Writer = standalone_write

    def __repr__(self) -> str:
        return f"Token({self.symbol}, {self.address})"

    def attach(self, write: Writer) -> None:
        self._write = write

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def mint(self, to: str, amount: int) -> None:
        """Issue ``amount`` new units to ``to``."""
        if amount < 0:
            raise InvalidAmount(f"Cannot mint negative amount {amount}")
        to = normalize_address(to)
        with self._write(self):
            self._balances[to] = self._balances.get(to, 0) + amount
            self.total_supply += amount
        logger.debug("token_mint", token=self.symbol, to=to, amount=amount)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            raise InvalidAmount(f"Cannot approve negative amount {amount}")
        key = (normalize_address(owner), normalize_address(spender))
        with self._write(self):
            self._allowances[key] = amount
        logger.debug("token_approval", token=self.symbol, owner=key[0], spender=key[1], amount=amount)
        return True

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        with self._write(self):
            self._move(normalize_address(sender), normalize_address(to), amount)
        return True

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        if amount < 0:
            raise InvalidAmount(f"Cannot transfer negative amount {amount}")
        key = (normalize_address(owner), normalize_address(spender))
        with self._write(self):
            allowed = self._allowances.get(key, 0)
            if allowed < amount:
                raise InsufficientAllowance(
                    f"{self.symbol}: allowance {allowed} of {key[1]} over {key[0]} is below {amount}"
                )
            balance = self._balances.get(key[0], 0)
            if balance < amount:
                raise InsufficientBalance(
                    f"{self.symbol}: balance {balance} of {key[0]} is below {amount}"
                )
            self._allowances[key] = allowed - amount
            self._move(key[0], normalize_address(to), amount)
        return True

    def add_transfer_hook(self, hook: TransferHook) -> None:
        self._hooks.append(hook)

    def remove_transfer_hook(self, hook: TransferHook) -> None:
        self._hooks.remove(hook)

    def snapshot(self) -> TokenSnapshot:
        return TokenSnapshot(dict(self._balances), dict(self._allowances), self.total_supply)

    def restore(self, snapshot: TokenSnapshot) -> None:
        self._balances = dict(snapshot.balances)
        self._allowances = dict(snapshot.allowances)
        self.total_supply = snapshot.total_supply

    def _move(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"Cannot transfer negative amount {amount}")
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalance(
                f"{self.symbol}: balance {balance} of {sender} is below {amount}"
            )
        self._balances[sender] = balance - amount
        self._balances[to] = self._balances.get(to, 0) + amount
        logger.debug("token_transfer", token=self.symbol, sender=sender, to=to, amount=amount)
        for hook in list(self._hooks):
            hook(sender, to, amount)
