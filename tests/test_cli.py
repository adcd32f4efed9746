import argparse
import json

import pytest

from dabscan.cli import main, parse_args
from dabscan.scan.scanner import ChannelScanner
from dabscan.util.duration import parse_duration_to_seconds
from dabscan.util.exit_codes import ExitCode


def _fast(monkeypatch) -> None:
    monkeypatch.setattr(ChannelScanner, "SETTLE_DELAY_S", 0.0)
    monkeypatch.setattr(ChannelScanner, "PRESENCE_TIMEOUT_S", 0.3)
    monkeypatch.setattr(ChannelScanner, "SERVICE_DWELL_S", 0.2)


def _scenario_file(tmp_path) -> str:
    path = tmp_path / "air.json"
    path.write_text(
        json.dumps(
            {
                "5B": {
                    "snr_db": 11.0,
                    "signal_delay_s": 0.01,
                    "sync_delay_s": 0.02,
                    "ensemble_id": "0x4C86",
                    "ensemble_label": "BBC National DAB  ",
                    "services": [
                        {"sid": "0xC221", "label": "Radio 2", "components": [{"subch_id": 3, "bitrate_kbps": 128}]}
                    ],
                }
            }
        ),
        encoding="utf-8",
    )
    return str(path)


def test_duration_parsing() -> None:
    assert parse_duration_to_seconds("10") == 10.0
    assert parse_duration_to_seconds("15s") == 15.0
    assert parse_duration_to_seconds("2m") == 120.0
    assert parse_duration_to_seconds(None) is None
    with pytest.raises(argparse.ArgumentTypeError):
        parse_duration_to_seconds("5x")


def test_defaults_for_simulated_driver() -> None:
    args = parse_args(["--driver", "simulated"])
    assert args.engine == "simulated"
    assert args.timeout == 10.0
    assert args.output == "-"
    assert args.engine_opt == []


def test_timeout_accepts_duration_suffix() -> None:
    args = parse_args(["--driver", "simulated", "--timeout", "15s"])
    assert args.timeout == 15.0


def test_non_positive_timeout_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as exc:
        parse_args(["--driver", "simulated", "--timeout", "0"])
    assert exc.value.code == ExitCode.INVALID_ARGS


def test_simulated_engine_needs_simulated_driver() -> None:
    with pytest.raises(SystemExit):
        parse_args(["--driver", "rtlsdr_native", "--engine", "simulated"])


def test_list_channels(capsys) -> None:
    assert main(["--list-channels", "--channels", "5A,5B"]) == ExitCode.SUCCESS
    out = json.loads(capsys.readouterr().out)
    assert out == [
        {"channel": "5A", "frequency_hz": 174_928_000},
        {"channel": "5B", "frequency_hz": 176_640_000},
    ]


def test_scan_writes_report_file(tmp_path, monkeypatch) -> None:
    _fast(monkeypatch)
    report = tmp_path / "scan.json"
    events = tmp_path / "events.jsonl"
    code = main(
        [
            "--driver", "simulated",
            "--scenario", _scenario_file(tmp_path),
            "--channels", "5A,5B",
            "--timeout", "1",
            "--output", str(report),
            "--jsonl", str(events),
        ]
    )
    assert code == ExitCode.SUCCESS
    text = report.read_text(encoding="utf-8")
    assert text.endswith("\n")
    doc = json.loads(text)
    assert doc["scan"]["channels_scanned"] == 2
    assert doc["scan"]["ensembles_found"] == 1
    entry = doc["results"][0]
    assert entry["channel"] == "5B"
    assert entry["frequency_hz"] == 176_640_000
    assert entry["ensemble"] == {"id": "0x4C86", "label": "BBC National DAB"}
    assert entry["services"] == [{"bitrate_kbps": 128, "label": "Radio 2", "sid": "0xC221"}]

    logged = [json.loads(line) for line in events.read_text(encoding="utf-8").splitlines()]
    assert [e["event"] for e in logged] == ["scan_start", "channel_result", "channel_result", "scan_summary"]
    assert [e.get("outcome") for e in logged[1:3]] == ["no_signal", "recorded"]


def test_unknown_engine_module(tmp_path) -> None:
    code = main(["--driver", "simulated", "--engine", "no_such_module_xyz:factory", "-o", str(tmp_path / "r.json")])
    assert code == ExitCode.ENGINE_UNAVAILABLE
    assert not (tmp_path / "r.json").exists()


def test_unknown_channel_selection() -> None:
    assert main(["--driver", "simulated", "--channels", "5A,ZZ"]) == ExitCode.INVALID_ARGS


def test_unwritable_report_path(tmp_path, monkeypatch) -> None:
    _fast(monkeypatch)
    target = tmp_path / "missing-dir" / "scan.json"
    code = main(["--driver", "simulated", "--channels", "5A", "-o", str(target)])
    assert code == ExitCode.OUTPUT_ERROR


def test_engine_loader_resolves_alias_and_rejects_bad_specs() -> None:
    from dabscan.engine.loader import EngineLoadError, load_engine_factory
    from dabscan.engine.simulated import SimulatedEngine

    assert load_engine_factory("simulated") is SimulatedEngine
    assert load_engine_factory("dabscan.engine.simulated:SimulatedEngine") is SimulatedEngine
    for bad in ("", "no-colon", "dabscan.engine.simulated:Missing", "dabscan.engine.simulated:logger"):
        with pytest.raises(EngineLoadError):
            load_engine_factory(bad)


def _failing_tune(self, frequency_hz: int) -> None:
    raise OSError("usb transfer failed")


def _failing_close(self) -> None:
    raise RuntimeError("device vanished")


def test_tuner_io_error_mid_scan_is_device_unavailable(tmp_path, monkeypatch) -> None:
    from dabscan.engine.simulated import SimulatedTuner

    _fast(monkeypatch)
    monkeypatch.setattr(SimulatedTuner, "set_frequency", _failing_tune)
    report = tmp_path / "scan.json"
    code = main(["--driver", "simulated", "--channels", "5A", "-o", str(report)])
    assert code == ExitCode.DEVICE_UNAVAILABLE
    assert not report.exists()


def test_close_failure_does_not_mask_scan_error(tmp_path, monkeypatch) -> None:
    from dabscan.engine.simulated import SimulatedTuner

    _fast(monkeypatch)
    monkeypatch.setattr(SimulatedTuner, "set_frequency", _failing_tune)
    monkeypatch.setattr(SimulatedTuner, "close", _failing_close)
    code = main(["--driver", "simulated", "--channels", "5A", "-o", str(tmp_path / "scan.json")])
    assert code == ExitCode.DEVICE_UNAVAILABLE


def test_close_failure_after_clean_scan_still_writes_report(tmp_path, monkeypatch) -> None:
    from dabscan.engine.simulated import SimulatedTuner

    _fast(monkeypatch)
    monkeypatch.setattr(SimulatedTuner, "close", _failing_close)
    report = tmp_path / "scan.json"
    code = main(["--driver", "simulated", "--scenario", _scenario_file(tmp_path), "--channels", "5B", "-o", str(report)])
    assert code == ExitCode.SUCCESS
    assert json.loads(report.read_text(encoding="utf-8"))["scan"]["ensembles_found"] == 1
