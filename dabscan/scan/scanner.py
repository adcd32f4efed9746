"""Sequential two-phase channel scan.

For every catalog entry the scanner retunes, runs a quick presence check,
and only for channels that show a signal starts a full decode, waits for sync
and reads back the ensemble's service list.
"""

from __future__ import annotations

import contextlib
import sys
import time
from typing import Any, Callable, Iterator, List, Mapping, Optional, TextIO, Tuple

from dabscan.channels.catalog import ChannelCatalog
from dabscan.engine.base import EngineFactory, ReceiverEngine, ScanMode, Tuner
from dabscan.scan.state import ScanState
from dabscan.scan.types import ChannelOutcome, ScanResult, ServiceInfo
from dabscan.util.labels import normalize_label
from dabscan.util.logging import channel_extra, get_logger
from dabscan.util.scan_logger import ScanLogger

logger = get_logger(__name__)


class ChannelScanner:
    """Walk a channel catalog once and collect one result per synced ensemble."""

    # Hardware/protocol timing, not user options.
    SETTLE_DELAY_S = 0.5  # AGC settling after a retune
    PRESENCE_TIMEOUT_S = 3.0
    SERVICE_DWELL_S = 3.0  # FIC needs a few seconds to carry the full service list

    def __init__(
        self,
        engine_factory: EngineFactory,
        tuner: Tuner,
        *,
        engine_options: Optional[Mapping[str, Any]] = None,
        sync_timeout_s: float = 10.0,
        diag: Optional[TextIO] = None,
        scan_logger: Optional[ScanLogger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if sync_timeout_s <= 0:
            raise ValueError("sync_timeout_s must be > 0")
        self.engine_factory = engine_factory
        self.tuner = tuner
        self.engine_options: Mapping[str, Any] = dict(engine_options or {})
        self.sync_timeout_s = float(sync_timeout_s)
        self.diag = diag if diag is not None else sys.stderr
        self.scan_logger = scan_logger
        self._sleep = sleep
        self.state = ScanState()
        self.results: List[ScanResult] = []

    def run(self, catalog: ChannelCatalog) -> List[ScanResult]:
        """Visit every catalog entry exactly once; return this run's results."""
        self.results = []
        total = len(catalog)
        if self.scan_logger:
            self.scan_logger.log("scan_start", total_channels=total, sync_timeout_s=self.sync_timeout_s)

        scanned = 0
        channel = catalog.first_channel()
        while channel != catalog.END:
            freq = catalog.frequency(channel)
            scanned += 1
            print(f"[{scanned}/{total}] {channel}  ({freq / 1e6:.3f} MHz) ... ", end="", file=self.diag, flush=True)

            started = time.monotonic()
            outcome, result = self.scan_channel(channel, freq)
            duration_ms = int((time.monotonic() - started) * 1000)

            print(self._describe(outcome, result), file=self.diag, flush=True)
            logger.debug(
                "channel %s finished: %s",
                channel,
                outcome.value,
                extra=channel_extra(channel, freq, duration_ms=duration_ms),
            )
            self._log_channel(channel, freq, outcome, result, duration_ms)
            channel = catalog.next_channel()

        logger.info("scan complete: %d/%d channels visited, %d ensembles found", scanned, total, len(self.results))
        if self.scan_logger:
            self.scan_logger.log("scan_summary", channels_scanned=scanned, ensembles_found=len(self.results))
        return list(self.results)

    def scan_channel(self, channel: str, frequency_hz: int) -> Tuple[ChannelOutcome, Optional[ScanResult]]:
        """Run the presence and sync phases for one channel."""
        self.state.reset()
        self.tuner.set_frequency(frequency_hz)
        self.tuner.reset()
        self._sleep(self.SETTLE_DELAY_S)

        with self._running_engine(ScanMode.QUICK):
            has_signal = self.state.wait_for_signal(self.PRESENCE_TIMEOUT_S)
        logger.debug("presence wait on %s: %s", channel, has_signal, extra=channel_extra(channel, frequency_hz, "presence"))
        if not has_signal:
            return ChannelOutcome.NO_SIGNAL, None

        self.state.clear_synced()
        self.tuner.reset()
        with self._running_engine(ScanMode.FULL) as engine:
            got_sync = self.state.wait_for_sync(self.sync_timeout_s)
            logger.debug("sync wait on %s: %s", channel, got_sync, extra=channel_extra(channel, frequency_hz, "sync"))
            if not got_sync:
                return ChannelOutcome.NO_SYNC, None

            self._sleep(self.SERVICE_DWELL_S)
            result = self._collect(engine, channel, frequency_hz)
            self.results.append(result)
        return ChannelOutcome.RECORDED, result

    @contextlib.contextmanager
    def _running_engine(self, mode: ScanMode) -> Iterator[ReceiverEngine]:
        # stop() drains callbacks, so the next reset() cannot race a late notification
        engine = self.engine_factory(self.state.listener(), self.tuner, self.engine_options)
        try:
            engine.start(mode)
            yield engine
        finally:
            engine.stop()

    def _collect(self, engine: ReceiverEngine, channel: str, frequency_hz: int) -> ScanResult:
        snap = self.state.snapshot()
        services: List[ServiceInfo] = []
        for svc in engine.service_list():
            bitrate = 0
            # Only the first component with a resolvable subchannel counts.
            for component in engine.components(svc):
                sub = engine.subchannel(component)
                if sub.is_valid:
                    bitrate = int(sub.bitrate_kbps)
                    break
            services.append(ServiceInfo(sid=int(svc.service_id), label=normalize_label(svc.label), bitrate_kbps=bitrate))
        logger.debug(
            "collected %d services (%d announced) on %s",
            len(services),
            len(snap.service_ids),
            channel,
            extra=channel_extra(channel, frequency_hz, "collect"),
        )
        return ScanResult(
            channel=channel,
            frequency_hz=int(frequency_hz),
            ensemble_label=normalize_label(snap.ensemble_label),
            ensemble_id=snap.ensemble_id,
            snr_db=snap.snr_db,
            services=tuple(services),
        )

    @staticmethod
    def _describe(outcome: ChannelOutcome, result: Optional[ScanResult]) -> str:
        if outcome is ChannelOutcome.NO_SIGNAL:
            return "no signal"
        if outcome is ChannelOutcome.NO_SYNC or result is None:
            return "signal but no sync"
        return f"found: {result.ensemble_label} ({len(result.services)} services, SNR {result.snr_db:.1f} dB)"

    def _log_channel(
        self,
        channel: str,
        frequency_hz: int,
        outcome: ChannelOutcome,
        result: Optional[ScanResult],
        duration_ms: int,
    ) -> None:
        if not self.scan_logger:
            return
        fields: dict = {
            "channel": channel,
            "frequency_hz": frequency_hz,
            "outcome": outcome.value,
            "duration_ms": duration_ms,
        }
        if result is not None:
            fields.update(
                snr_db=result.snr_db,
                ensemble_id=result.ensemble_id,
                ensemble_label=result.ensemble_label,
                service_count=len(result.services),
                detected_service_ids=len(self.state.snapshot().service_ids),
            )
        self.scan_logger.log("channel_result", **fields)
