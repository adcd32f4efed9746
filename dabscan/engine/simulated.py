"""Simulated tuner and decoding engine.

The tuner carries a table of what is "on air" per frequency; the engine looks
up the scenario for the tuner's current frequency and plays it back from a
worker thread, the same way a real demodulator reports from its own threads.
Used by the test-suite and by ``--driver simulated --engine simulated``.
"""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np

from dabscan.channels.catalog import ChannelCatalog
from dabscan.engine.base import Component, ScanMode, Service, Subchannel
from dabscan.engine.listener import ReceiverListener
from dabscan.util.logging import get_logger

logger = get_logger(__name__)


def _parse_int(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 0)
    return int(value)


@dataclass
class ServiceScenario:
    sid: int
    label: str
    components: List[Tuple[int, int]] = field(default_factory=list)  # (subch_id, bitrate_kbps)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ServiceScenario":
        comps = [
            (_parse_int(c.get("subch_id", Subchannel.INVALID_ID)), int(c.get("bitrate_kbps", 0)))
            for c in raw.get("components", [])
        ]
        return cls(sid=_parse_int(raw["sid"]), label=str(raw.get("label", "")), components=comps)


@dataclass
class ChannelScenario:
    snr_db: float = 10.0
    signal: bool = True
    signal_delay_s: float = 0.05
    sync: bool = True
    sync_delay_s: float = 0.2
    ensemble_id: int = 0
    ensemble_label: str = ""
    services: List[ServiceScenario] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ChannelScenario":
        return cls(
            snr_db=float(raw.get("snr_db", 10.0)),
            signal=bool(raw.get("signal", True)),
            signal_delay_s=float(raw.get("signal_delay_s", 0.05)),
            sync=bool(raw.get("sync", True)),
            sync_delay_s=float(raw.get("sync_delay_s", 0.2)),
            ensemble_id=_parse_int(raw.get("ensemble_id", 0)),
            ensemble_label=str(raw.get("ensemble_label", "")),
            services=[ServiceScenario.from_dict(s) for s in raw.get("services", [])],
        )


def load_scenarios(path: str, catalog: ChannelCatalog) -> Dict[int, ChannelScenario]:
    """Load a scenario file keyed by channel id (``"5B"``) or frequency in Hz."""
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, dict):
        raise ValueError(f"Scenario file {path} must contain a JSON object")
    scenarios: Dict[int, ChannelScenario] = {}
    for key, value in raw.items():
        freq = int(key) if str(key).isdigit() else catalog.frequency(str(key))
        scenarios[freq] = ChannelScenario.from_dict(value)
    return scenarios


class SimulatedTuner:
    """Tuner stand-in that records retunes and buffer resets."""

    def __init__(self, scenarios: Optional[Mapping[int, ChannelScenario]] = None, samp_rate: float = 2_048_000):
        self.scenarios: Dict[int, ChannelScenario] = dict(scenarios or {})
        self.samp_rate = samp_rate
        self.frequency_hz = 0
        self.tune_history: List[int] = []
        self.reset_count = 0
        self.device = "simulated"

    def set_frequency(self, frequency_hz: int) -> None:
        self.frequency_hz = int(frequency_hz)
        self.tune_history.append(self.frequency_hz)

    def reset(self) -> None:
        self.reset_count += 1

    def read(self, count: int) -> np.ndarray:
        noise = np.random.default_rng().standard_normal((2, count)).astype(np.float32)
        return (noise[0] + 1j * noise[1]).astype(np.complex64) / np.sqrt(2.0)

    def current_scenario(self) -> Optional[ChannelScenario]:
        return self.scenarios.get(self.frequency_hz)

    def close(self) -> None:
        pass


class SimulatedEngine:
    """Plays a ChannelScenario back through a listener from a worker thread."""

    REPORT_INTERVAL_S = 0.05

    def __init__(self, listener: ReceiverListener, tuner: SimulatedTuner, options: Optional[Mapping[str, Any]] = None):
        opts = dict(options or {})
        seed = opts.get("seed")
        self.listener = listener
        self.tuner = tuner
        self._rng = np.random.default_rng(int(seed) if seed is not None else None)
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._services: Dict[int, ServiceScenario] = {}
        self.mode: Optional[ScanMode] = None
        self.stop_count = 0

    def start(self, mode: ScanMode) -> None:
        if self._thread is not None:
            raise RuntimeError("engine already running")
        self.mode = mode
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._deliver,
            args=(mode, self.tuner.current_scenario()),
            name=f"sim-engine-{self.tuner.frequency_hz}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self.stop_count += 1

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def service_list(self) -> List[Service]:
        with self._lock:
            return [Service(service_id=s.sid, label=s.label) for s in self._services.values()]

    def components(self, service: Service) -> List[Component]:
        with self._lock:
            svc = self._services.get(service.service_id)
        if svc is None:
            return []
        return [Component(service_id=svc.sid, subch_id=subch_id) for subch_id, _ in svc.components]

    def subchannel(self, component: Component) -> Subchannel:
        with self._lock:
            svc = self._services.get(component.service_id)
        if svc is not None:
            for subch_id, bitrate in svc.components:
                if subch_id == component.subch_id and subch_id != Subchannel.INVALID_ID:
                    return Subchannel(subch_id=subch_id, bitrate_kbps=bitrate)
        return Subchannel(subch_id=Subchannel.INVALID_ID, bitrate_kbps=0)

    def _deliver(self, mode: ScanMode, scenario: Optional[ChannelScenario]) -> None:
        started = time.monotonic()
        presence_sent = False
        sync_sent = False
        while not self._stop_event.is_set():
            elapsed = time.monotonic() - started
            if scenario is None:
                self.listener.emit_snr(abs(float(self._rng.normal(0.0, 0.5))))
            else:
                self.listener.emit_snr(scenario.snr_db + float(self._rng.normal(0.0, 0.3)))
                if scenario.signal and not presence_sent and elapsed >= scenario.signal_delay_s:
                    self.listener.emit_signal_presence(True)
                    presence_sent = True
                if (
                    mode is ScanMode.FULL
                    and scenario.signal
                    and scenario.sync
                    and not sync_sent
                    and elapsed >= scenario.sync_delay_s
                ):
                    self._announce(scenario)
                    sync_sent = True
            self._stop_event.wait(self.REPORT_INTERVAL_S)
        logger.debug("simulated engine on %d Hz drained", self.tuner.frequency_hz)

    def _announce(self, scenario: ChannelScenario) -> None:
        self.listener.emit_sync_change(True)
        self.listener.emit_new_ensemble(scenario.ensemble_id)
        self.listener.emit_ensemble_label(scenario.ensemble_label)
        for svc in scenario.services:
            with self._lock:
                self._services[svc.sid] = svc
            self.listener.emit_service_detected(svc.sid)
