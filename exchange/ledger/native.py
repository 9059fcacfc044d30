"""Native currency balances and the transfer primitive."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from exchange.errors import InsufficientBalance, InvalidAmount
from exchange.ledger.base import Writer, standalone_write
from exchange.models.types import normalize_address

logger = structlog.get_logger()

# Called when an account receives native currency, as hook(sender, amount)
ReceiveHook = Callable[[str, int], None]


@dataclass(frozen=True)
class NativeSnapshot:
    balances: dict[str, int]
    total_issued: int


class NativeLedger:
    """Native-currency balances keyed by account.

    An account may carry a receive hook, which runs after every transfer
    it receives. Hooks stand in for receiving code the sender does not
    control and may call back into the exchange.

    The runtime attaches its native ledger on creation, so credits and
    transfers are serialized with every other state-changing call.
    """

    def __init__(self) -> None:
        self.total_issued = 0
        self._balances: dict[str, int] = {}
        self._receive_hooks: dict[str, ReceiveHook] = {}
        self._write: Writer = standalone_write

    def attach(self, write: Writer) -> None:
        self._write = write

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def credit(self, account: str, amount: int) -> None:
        """Issue ``amount`` new native units to ``account``."""
        if amount < 0:
            raise InvalidAmount(f"Cannot credit negative amount {amount}")
        account = normalize_address(account)
        with self._write(self):
            self._balances[account] = self._balances.get(account, 0) + amount
            self.total_issued += amount
        logger.debug("native_credit", account=account, amount=amount)

    def transfer(self, sender: str, to: str, amount: int) -> None:
        """Move ``amount`` from ``sender`` to ``to`` and run ``to``'s receive hook.

        Raises:
            InvalidAmount: If amount is negative
            InsufficientBalance: If sender holds less than amount
        """
        if amount < 0:
            raise InvalidAmount(f"Cannot transfer negative amount {amount}")
        sender = normalize_address(sender)
        to = normalize_address(to)
        with self._write(self):
            balance = self._balances.get(sender, 0)
            if balance < amount:
                raise InsufficientBalance(
                    f"Native balance {balance} of {sender} is below {amount}"
                )
            self._balances[sender] = balance - amount
            self._balances[to] = self._balances.get(to, 0) + amount
            logger.debug("native_transfer", sender=sender, to=to, amount=amount)

            hook = self._receive_hooks.get(to)
            if hook is not None:
                hook(sender, amount)

    def set_receive_hook(self, account: str, hook: ReceiveHook | None) -> None:
        """Install (or with None, clear) the receive hook of ``account``."""
        account = normalize_address(account)
        if hook is None:
            self._receive_hooks.pop(account, None)
        else:
            self._receive_hooks[account] = hook

    def snapshot(self) -> NativeSnapshot:
        return NativeSnapshot(dict(self._balances), self.total_issued)

    def restore(self, snapshot: NativeSnapshot) -> None:
        self._balances = dict(snapshot.balances)
        self.total_issued = snapshot.total_issued
