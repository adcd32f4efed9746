import io
import json
import time

import pytest

from dabscan.channels.catalog import ChannelCatalog
from dabscan.engine.base import Component, ScanMode, Service
from dabscan.engine.listener import ReceiverListener
from dabscan.engine.simulated import (
    ChannelScenario,
    ServiceScenario,
    SimulatedEngine,
    SimulatedTuner,
    load_scenarios,
)
from dabscan.scan.scanner import ChannelScanner


def _bbc_scenario() -> ChannelScenario:
    return ChannelScenario(
        snr_db=15.0,
        signal_delay_s=0.02,
        sync_delay_s=0.05,
        ensemble_id=0x4C86,
        ensemble_label="BBC National DAB  ",
        services=[
            ServiceScenario(sid=0xC221, label="Radio 2 ", components=[(-1, 0), (2, 128)]),
            ServiceScenario(sid=0xC224, label="Radio 4", components=[]),
        ],
    )


class _Counter:
    def __init__(self) -> None:
        self.calls = 0

    def listener(self) -> ReceiverListener:
        def _bump(*_args) -> None:
            self.calls += 1

        return ReceiverListener(
            on_snr=_bump,
            on_signal_presence=_bump,
            on_sync_change=_bump,
            on_service_detected=_bump,
            on_new_ensemble=_bump,
            on_ensemble_label=_bump,
        )


def test_stop_drains_worker_thread() -> None:
    tuner = SimulatedTuner({176_640_000: _bbc_scenario()})
    tuner.set_frequency(176_640_000)
    counter = _Counter()
    engine = SimulatedEngine(counter.listener(), tuner, {"seed": 7})
    engine.start(ScanMode.FULL)
    time.sleep(0.15)
    engine.stop()
    assert not engine.running
    after_stop = counter.calls
    assert after_stop > 0
    time.sleep(0.15)
    assert counter.calls == after_stop
    assert engine.stop_count == 1


def test_quick_mode_never_syncs() -> None:
    tuner = SimulatedTuner({1: _bbc_scenario()})
    tuner.set_frequency(1)
    seen = []
    listener = ReceiverListener(on_signal_presence=lambda v: seen.append(("presence", v)), on_sync_change=lambda v: seen.append(("sync", v)))
    engine = SimulatedEngine(listener, tuner)
    engine.start(ScanMode.QUICK)
    time.sleep(0.2)
    engine.stop()
    assert ("presence", True) in seen
    assert not any(kind == "sync" for kind, _ in seen)
    assert engine.service_list() == []


def test_double_start_rejected() -> None:
    tuner = SimulatedTuner()
    engine = SimulatedEngine(ReceiverListener(), tuner)
    engine.start(ScanMode.QUICK)
    try:
        with pytest.raises(RuntimeError):
            engine.start(ScanMode.QUICK)
    finally:
        engine.stop()


def test_subchannel_lookup() -> None:
    tuner = SimulatedTuner({1: _bbc_scenario()})
    tuner.set_frequency(1)
    engine = SimulatedEngine(ReceiverListener(), tuner)
    engine.start(ScanMode.FULL)
    time.sleep(0.2)
    engine.stop()
    services = {s.service_id: s for s in engine.service_list()}
    assert set(services) == {0xC221, 0xC224}
    comps = engine.components(services[0xC221])
    assert [c.subch_id for c in comps] == [-1, 2]
    assert not engine.subchannel(comps[0]).is_valid
    assert engine.subchannel(comps[1]).bitrate_kbps == 128
    assert engine.components(Service(0xFFFF, "")) == []
    assert not engine.subchannel(Component(service_id=0xFFFF, subch_id=9)).is_valid


def test_threaded_scan_end_to_end(monkeypatch) -> None:
    monkeypatch.setattr(ChannelScanner, "SETTLE_DELAY_S", 0.0)
    monkeypatch.setattr(ChannelScanner, "PRESENCE_TIMEOUT_S", 0.5)
    monkeypatch.setattr(ChannelScanner, "SERVICE_DWELL_S", 0.2)
    catalog = ChannelCatalog([("5A", 174_928_000), ("5B", 176_640_000), ("5C", 178_352_000)])
    tuner = SimulatedTuner(
        {
            176_640_000: _bbc_scenario(),
            178_352_000: ChannelScenario(signal_delay_s=0.02, sync=False),
        }
    )
    diag = io.StringIO()
    scanner = ChannelScanner(SimulatedEngine, tuner, sync_timeout_s=0.3, diag=diag)

    results = scanner.run(catalog)

    assert [r.channel for r in results] == ["5B"]
    r = results[0]
    assert r.ensemble_id == 0x4C86
    assert r.ensemble_label == "BBC National DAB"
    assert 13.0 < r.snr_db < 17.0
    assert sorted((s.sid, s.label, s.bitrate_kbps) for s in r.services) == [(0xC221, "Radio 2", 128), (0xC224, "Radio 4", 0)]
    outcomes = [line.split("... ")[1] for line in diag.getvalue().splitlines()]
    assert outcomes[0] == "no signal"
    assert outcomes[1].startswith("found: BBC National DAB (2 services")
    assert outcomes[2] == "signal but no sync"


def test_load_scenarios_accepts_channel_ids_and_frequencies(tmp_path) -> None:
    path = tmp_path / "air.json"
    path.write_text(
        json.dumps(
            {
                "5B": {
                    "ensemble_id": "0x4C86",
                    "ensemble_label": "BBC National DAB",
                    "services": [{"sid": "0xC221", "label": "Radio 2", "components": [{"subch_id": 3, "bitrate_kbps": 128}]}],
                },
                "178352000": {"sync": False},
            }
        ),
        encoding="utf-8",
    )
    scenarios = load_scenarios(str(path), ChannelCatalog())
    assert scenarios[176_640_000].ensemble_id == 0x4C86
    assert scenarios[176_640_000].services[0].components == [(3, 128)]
    assert scenarios[178_352_000].sync is False


def test_load_scenarios_rejects_unknown_channel(tmp_path) -> None:
    path = tmp_path / "air.json"
    path.write_text(json.dumps({"99Z": {}}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_scenarios(str(path), ChannelCatalog())
