import json
import logging

from dabscan.util.logging import ConsoleFormatter, JSONFormatter, channel_extra, get_logger


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("dabscan.scan.scanner", logging.DEBUG, __file__, 1, "sync wait on %s: %s", ("5B", True), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_channel_extra_skips_unset_fields() -> None:
    assert channel_extra("5B") == {"channel": "5B"}
    assert channel_extra("5B", 176_640_000, "sync", duration_ms=12) == {
        "channel": "5B",
        "frequency_hz": 176_640_000,
        "phase": "sync",
        "duration_ms": 12,
    }


def test_json_formatter_keeps_channel_context() -> None:
    out = json.loads(JSONFormatter().format(_record(**channel_extra("5B", 176_640_000, "sync"))))
    assert out["message"] == "sync wait on 5B: True"
    assert out["logger"] == "dabscan.scan.scanner"
    assert (out["channel"], out["frequency_hz"], out["phase"]) == ("5B", 176_640_000, "sync")
    assert out["ts"].endswith("Z")
    assert "error_type" not in out


def test_console_formatter_appends_channel_context() -> None:
    line = ConsoleFormatter(use_color=False).format(_record(**channel_extra("5B", 176_640_000, "sync")))
    assert "[scan.scanner] sync wait on 5B: True" in line
    assert line.endswith("<5B 176.640 MHz sync>")


def test_console_formatter_without_context() -> None:
    line = ConsoleFormatter(use_color=False).format(_record())
    assert line.endswith("sync wait on 5B: True")


def test_get_logger_namespaces_names() -> None:
    assert get_logger("scan.runner").name == "dabscan.scan.runner"
    assert get_logger("dabscan.cli").name == "dabscan.cli"
    assert get_logger("__main__").name == "dabscan.main"
