"""Notification handlers handed to a decoding engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class ReceiverListener:
    """The notifications a scan cares about.

    Engines call the ``emit_*`` helpers from their own threads; handlers left
    as ``None`` are skipped. Any other notification an engine produces has no
    slot here and is simply not delivered.
    """

    on_snr: Optional[Callable[[float], None]] = None
    on_signal_presence: Optional[Callable[[bool], None]] = None
    on_sync_change: Optional[Callable[[bool], None]] = None
    on_service_detected: Optional[Callable[[int], None]] = None
    on_new_ensemble: Optional[Callable[[int], None]] = None
    on_ensemble_label: Optional[Callable[[str], None]] = None

    def emit_snr(self, snr_db: float) -> None:
        if self.on_snr is not None:
            self.on_snr(float(snr_db))

    def emit_signal_presence(self, present: bool) -> None:
        if self.on_signal_presence is not None:
            self.on_signal_presence(bool(present))

    def emit_sync_change(self, synced: bool) -> None:
        if self.on_sync_change is not None:
            self.on_sync_change(bool(synced))

    def emit_service_detected(self, service_id: int) -> None:
        if self.on_service_detected is not None:
            self.on_service_detected(int(service_id))

    def emit_new_ensemble(self, ensemble_id: int) -> None:
        if self.on_new_ensemble is not None:
            self.on_new_ensemble(int(ensemble_id))

    def emit_ensemble_label(self, label: str) -> None:
        if self.on_ensemble_label is not None:
            self.on_ensemble_label(str(label))
