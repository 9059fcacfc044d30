"""Execution environment shared by every pool of a deployment.

The Runtime provides what the pools treat as ambient: the current time used
for deadline checks, the native-currency ledger, and all-or-nothing
execution of state-changing calls.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import structlog

from exchange.errors import Expired
from exchange.ledger.base import AssetLedger, Attachable, Journaled
from exchange.ledger.native import NativeLedger
from exchange.models.types import normalize_address

logger = structlog.get_logger()

Clock = Callable[[], int]


def system_clock() -> int:
    """Current Unix time in whole seconds."""
    return int(time.time())


class Runtime:
    """Clock, native ledger and transaction boundary for a deployment.

    ``atomic()`` is the transaction boundary: it serializes state-changing
    calls across threads and, if the section raises, restores every
    participant journaled while it ran. Sections nest; each level is its own
    savepoint, so a failed inner call that the caller handles leaves no trace
    while the outer call continues.
    """

    def __init__(self, clock: Clock = system_clock, native: NativeLedger | None = None) -> None:
        self.clock = clock
        self.native = native if native is not None else NativeLedger()
        self._assets: dict[str, AssetLedger] = {}
        self._savepoints: list[dict[int, tuple[Journaled, Any]]] = []
        self._lock = threading.RLock()
        self.native.attach(self.write)

    def now(self) -> int:
        return self.clock()

    def register_asset(self, address: str, ledger: AssetLedger) -> None:
        """Make ``ledger`` reachable under ``address``.

        Attachable ledgers route their writes through ``write()`` from now on.
        """
        address = normalize_address(address, validate=True)
        with self._lock:
            if address in self._assets:
                raise ValueError(f"Asset {address} is already registered")
            self._assets[address] = ledger
            if isinstance(ledger, Attachable):
                ledger.attach(self.write)

    def get_asset(self, address: str) -> AssetLedger | None:
        return self._assets.get(normalize_address(address))

    def check_deadline(self, deadline: int) -> None:
        """Raise Expired if ``deadline`` is earlier than the current time."""
        now = self.now()
        if now > deadline:
            raise Expired(f"Deadline {deadline} passed (now {now})")

    def journal(self, participant: Journaled) -> None:
        """Record ``participant`` in every open savepoint that lacks it.

        Call before the first change to ``participant`` inside ``atomic()``.
        A savepoint only restores the participants journaled into it, so a
        section costs time proportional to the state it touches.
        """
        if not isinstance(participant, Journaled):
            raise TypeError(f"{type(participant).__name__} does not support snapshot/restore")
        with self._lock:
            snapshot: Any = None
            for savepoint in self._savepoints:
                if id(participant) not in savepoint:
                    if snapshot is None:
                        snapshot = participant.snapshot()
                    savepoint[id(participant)] = (participant, snapshot)

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run the enclosed block all-or-nothing."""
        with self._lock:
            savepoint: dict[int, tuple[Journaled, Any]] = {}
            self._savepoints.append(savepoint)
            try:
                yield
            except BaseException as exc:
                for participant, snapshot in reversed(list(savepoint.values())):
                    participant.restore(snapshot)
                logger.debug("atomic_rollback", error=type(exc).__name__, restored=len(savepoint))
                raise
            finally:
                self._savepoints.pop()

    @contextmanager
    def write(self, participant: Journaled) -> Iterator[None]:
        """Atomic section that changes ``participant``.

        Attached ledgers run every mutation in one, which serializes it with
        the pools' calls and journals the ledger first.
        """
        with self.atomic():
            self.journal(participant)
            yield
