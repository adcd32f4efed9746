"""Per-channel scan state shared between engine callbacks and the scan loop."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional, Set

from dabscan.engine.listener import ReceiverListener
from dabscan.util.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StateSnapshot:
    signal_present: bool
    synced: bool
    snr_db: float
    ensemble_id: int
    ensemble_label: str
    service_ids: FrozenSet[int]


class ScanState:
    """Monitor over the fields engine notifications update.

    Setters may be called from any thread at any rate. Each takes the lock,
    changes one field, and for signal presence and sync wakes the waiter.
    ``wait_for`` is the only blocking call and is meant for the scan loop.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._generation = 0
        self._signal_present = False
        self._synced = False
        self._snr_db = 0.0
        self._ensemble_id = 0
        self._ensemble_label = ""
        self._service_ids: Set[int] = set()

    # -- scan loop side -------------------------------------------------

    def reset(self) -> None:
        """Clear every field and retire listeners handed out before now."""
        with self._cond:
            self._generation += 1
            self._signal_present = False
            self._synced = False
            self._snr_db = 0.0
            self._ensemble_id = 0
            self._ensemble_label = ""
            self._service_ids.clear()

    def clear_synced(self) -> None:
        with self._cond:
            self._synced = False

    def wait_for(self, predicate: Callable[[StateSnapshot], bool], timeout_s: float) -> bool:
        """Block until ``predicate`` holds or ``timeout_s`` elapses.

        Returns the predicate's value at wake-up, so True means it was
        satisfied before the deadline.
        """
        deadline = time.monotonic() + max(0.0, float(timeout_s))
        with self._cond:
            while True:
                if predicate(self._snapshot_locked()):
                    return True
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._cond.wait(remaining)

    def wait_for_signal(self, timeout_s: float) -> bool:
        return self.wait_for(lambda s: s.signal_present, timeout_s)

    def wait_for_sync(self, timeout_s: float) -> bool:
        return self.wait_for(lambda s: s.synced, timeout_s)

    def snapshot(self) -> StateSnapshot:
        with self._cond:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> StateSnapshot:
        return StateSnapshot(
            signal_present=self._signal_present,
            synced=self._synced,
            snr_db=self._snr_db,
            ensemble_id=self._ensemble_id,
            ensemble_label=self._ensemble_label,
            service_ids=frozenset(self._service_ids),
        )

    # -- notification side ----------------------------------------------

    def set_snr(self, snr_db: float, generation: Optional[int] = None) -> None:
        with self._cond:
            if self._stale(generation, "snr"):
                return
            self._snr_db = float(snr_db)

    def set_signal_present(self, present: bool, generation: Optional[int] = None) -> None:
        with self._cond:
            if self._stale(generation, "signal_presence"):
                return
            self._signal_present = bool(present)
            self._cond.notify_all()

    def set_synced(self, synced: bool, generation: Optional[int] = None) -> None:
        with self._cond:
            if self._stale(generation, "sync"):
                return
            self._synced = bool(synced)
            self._cond.notify_all()

    def add_service_id(self, service_id: int, generation: Optional[int] = None) -> None:
        with self._cond:
            if self._stale(generation, "service_detected"):
                return
            self._service_ids.add(int(service_id))

    def set_ensemble_id(self, ensemble_id: int, generation: Optional[int] = None) -> None:
        with self._cond:
            if self._stale(generation, "ensemble_id"):
                return
            self._ensemble_id = int(ensemble_id)

    def set_ensemble_label(self, label: str, generation: Optional[int] = None) -> None:
        with self._cond:
            if self._stale(generation, "ensemble_label"):
                return
            self._ensemble_label = str(label)

    def _stale(self, generation: Optional[int], kind: str) -> bool:
        if generation is None or generation == self._generation:
            return False
        logger.debug("dropping %s notification from generation %d (current %d)", kind, generation, self._generation)
        return True

    def listener(self) -> ReceiverListener:
        """Build engine handlers bound to the current generation of this state."""
        with self._cond:
            gen = self._generation
        return ReceiverListener(
            on_snr=lambda v: self.set_snr(v, gen),
            on_signal_presence=lambda v: self.set_signal_present(v, gen),
            on_sync_change=lambda v: self.set_synced(v, gen),
            on_service_detected=lambda v: self.add_service_id(v, gen),
            on_new_ensemble=lambda v: self.set_ensemble_id(v, gen),
            on_ensemble_label=lambda v: self.set_ensemble_label(v, gen),
        )
