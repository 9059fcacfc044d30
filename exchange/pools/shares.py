"""Liquidity share accounting."""

from __future__ import annotations

from dataclasses import dataclass

from exchange.errors import InsufficientAllowance, InsufficientShares, InvalidAmount
from exchange.models.types import normalize_address


@dataclass(frozen=True)
class ShareSnapshot:
    balances: dict[str, int]
    allowances: dict[tuple[str, str], int]
    total_supply: int


class ShareLedger:
    """Fungible liquidity shares of one pool.

    Shares behave like any balance ledger entry: they can be transferred,
    approved and spent by an approved spender. Minting and burning are
    reserved to the owning pool.
    """

    def __init__(self) -> None:
        self.total_supply = 0
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def holders(self) -> dict[str, int]:
        """Accounts with a non-zero share balance."""
        return {account: amount for account, amount in self._balances.items() if amount}

    def mint(self, to: str, amount: int) -> None:
        to = normalize_address(to)
        self._balances[to] = self._balances.get(to, 0) + amount
        self.total_supply += amount

    def burn(self, owner: str, amount: int) -> None:
        owner = normalize_address(owner)
        balance = self._balances.get(owner, 0)
        if balance < amount:
            raise InsufficientShares(f"Share balance {balance} of {owner} is below {amount}")
        self._balances[owner] = balance - amount
        self.total_supply -= amount

    def transfer(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"Cannot transfer negative share amount {amount}")
        sender = normalize_address(sender)
        to = normalize_address(to)
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientShares(f"Share balance {balance} of {sender} is below {amount}")
        self._balances[sender] = balance - amount
        self._balances[to] = self._balances.get(to, 0) + amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"Cannot approve negative share amount {amount}")
        self._allowances[(normalize_address(owner), normalize_address(spender))] = amount

    def spend_allowance(self, owner: str, spender: str, amount: int) -> None:
        key = (normalize_address(owner), normalize_address(spender))
        allowed = self._allowances.get(key, 0)
        if allowed < amount:
            raise InsufficientAllowance(
                f"Share allowance {allowed} of {key[1]} over {key[0]} is below {amount}"
            )
        self._allowances[key] = allowed - amount

    def snapshot(self) -> ShareSnapshot:
        return ShareSnapshot(dict(self._balances), dict(self._allowances), self.total_supply)

    def restore(self, snapshot: ShareSnapshot) -> None:
        self._balances = dict(snapshot.balances)
        self._allowances = dict(snapshot.allowances)
        self.total_supply = snapshot.total_supply
