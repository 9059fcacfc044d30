"""Per-pool reentrancy guard."""

from __future__ import annotations

import threading
from types import TracebackType

from exchange.errors import Reentrancy


class ReentrancyGuard:
    """Exclusive guard held for the whole duration of a pool mutator.

    Acquisition never blocks: if the guard is already held, the caller is
    a nested invocation (a transfer hook calling back into the pool) and
    gets Reentrancy. Cross-thread ordering is provided by
    ``Runtime.atomic``, which every mutator enters first.

    Usage:
        with self._guard:
            ...
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def __enter__(self) -> ReentrancyGuard:
        if not self._lock.acquire(blocking=False):
            raise Reentrancy(f"{self.name}: mutator already in progress")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._lock.release()
