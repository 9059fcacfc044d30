"""Interfaces of the ledgers the exchange consumes."""

from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from typing import Any, Protocol, runtime_checkable

# Opens the section a ledger mutates its state in, given the ledger itself
Writer = Callable[[Any], AbstractContextManager[Any]]


def standalone_write(ledger: Any) -> AbstractContextManager[Any]:
    """Write section of a ledger that is not attached to a runtime."""
    return nullcontext()


@runtime_checkable
class AssetLedger(Protocol):
    """Fungible-balance ledger for one asset, keyed by account address.

    This is the surface a pool needs from the asset it trades. Any ledger
    with these methods can back a pool; ``Token`` is the in-memory
    implementation.

    ``transfer`` and ``transfer_from`` may run code the pool does not
    control (receive hooks), so callers must not assume balances are
    unchanged across them.
    """

    def balance_of(self, account: str) -> int:
        """Balance held by ``account``."""
        ...

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``sender`` to ``to``."""
        ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """Move ``amount`` from ``owner`` to ``to`` using ``spender``'s allowance."""
        ...

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set ``spender``'s allowance over ``owner``'s balance."""
        ...

    def allowance(self, owner: str, spender: str) -> int:
        """Remaining amount ``spender`` may move on behalf of ``owner``."""
        ...


@runtime_checkable
class Journaled(Protocol):
    """State holder that can be captured and rolled back.

    ``Runtime.atomic`` snapshots a Journaled object the first time it is
    written inside a section and restores it if the section fails.
    """

    def snapshot(self) -> Any:
        """Capture the current state."""
        ...

    def restore(self, snapshot: Any) -> None:
        """Return to a state captured by ``snapshot``."""
        ...


@runtime_checkable
class Attachable(Journaled, Protocol):
    """Journaled ledger whose writes can be routed through a runtime.

    Once attached, every mutating method runs inside ``write(self)``, which
    serializes it with the runtime's other state-changing calls and journals
    the ledger before it changes.
    """

    def attach(self, write: Writer) -> None:
        """Route subsequent writes through ``write``."""
        ...
