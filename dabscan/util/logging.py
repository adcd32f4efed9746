"""Logging for dabscan.

Everything logs under the ``dabscan`` namespace. Records emitted from inside a
channel scan carry the channel id, its frequency and the scan phase
(``presence``, ``sync``, ``collect``) as ``extra`` fields; build them with
:func:`channel_extra`. The console shows that context as a suffix, e.g.::

    [2026-10-19 08:00:01] DEBUG    [scan.scanner] sync wait on 5B: True  <5B 176.640 MHz sync>

and the optional ``--log-json`` file keeps the fields as JSON keys so a run
can be filtered per channel afterwards.

DABSCAN_DEBUG=1 or DABSCAN_LOG_LEVEL pick the level when the CLI does not.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional


_configured = False
_root_logger_name = "dabscan"

# extra fields copied from log records into JSON output
CONTEXT_KEYS = ("channel", "frequency_hz", "phase", "error_type", "duration_ms")


def channel_extra(
    channel: str,
    frequency_hz: Optional[int] = None,
    phase: Optional[str] = None,
    **fields: Any,
) -> Dict[str, Any]:
    """Build the ``extra`` mapping for a record about one channel."""
    extra: Dict[str, Any] = {"channel": channel}
    if frequency_hz is not None:
        extra["frequency_hz"] = int(frequency_hz)
    if phase is not None:
        extra["phase"] = phase
    extra.update(fields)
    return extra


def _utc_stamp(record: logging.LogRecord, timespec: str = "milliseconds") -> str:
    stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return stamp.isoformat(timespec=timespec).replace("+00:00", "Z")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the channel context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        output: Dict[str, Any] = {
            "ts": _utc_stamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                output[key] = value
        if record.exc_info:
            output["traceback"] = "".join(traceback.format_exception(*record.exc_info))
        return json.dumps(output, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Operator-facing stderr lines; channel context is appended in angle brackets."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color and sys.stderr.isatty()

    @staticmethod
    def context(record: logging.LogRecord) -> str:
        parts = []
        channel = getattr(record, "channel", None)
        if channel:
            parts.append(str(channel))
        freq = getattr(record, "frequency_hz", None)
        if freq is not None:
            parts.append(f"{int(freq) / 1e6:.3f} MHz")
        phase = getattr(record, "phase", None)
        if phase:
            parts.append(str(phase))
        return f"<{' '.join(parts)}>" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname
        if self.use_color:
            level_str = f"{self.LEVEL_COLORS.get(level, '')}{level:8}{self.RESET}"
        else:
            level_str = f"{level:8}"
        name = record.name[len(_root_logger_name) + 1 :] if record.name.startswith(_root_logger_name + ".") else record.name
        line = f"[{ts}] {level_str} [{name}] {record.getMessage()}"
        ctx = self.context(record)
        if ctx:
            line += "  " + ctx
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info))
        return line


def _level_from_env() -> str:
    if os.environ.get("DABSCAN_DEBUG", "").strip().lower() in ("1", "true", "yes"):
        return "DEBUG"
    return os.environ.get("DABSCAN_LOG_LEVEL", "INFO")


def configure_logging(
    *,
    level: Optional[str] = None,
    json_file: Optional[str] = None,
    use_color: bool = True,
) -> None:
    """Install the console handler and, with ``json_file``, a JSON-lines file handler.

    Calling it again replaces the handlers of a previous call; ``main()``
    runs it once per invocation after argument parsing.
    """
    global _configured

    numeric_level = getattr(logging, (level or _level_from_env()).upper(), logging.INFO)

    root = logging.getLogger(_root_logger_name)
    root.setLevel(numeric_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(ConsoleFormatter(use_color=use_color))
    root.addHandler(console_handler)

    if json_file:
        try:
            file_handler = logging.FileHandler(json_file, mode="a", encoding="utf-8")
        except OSError as exc:
            root.warning("cannot open JSON log %s (%s); logging to console only", json_file, exc)
        else:
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(JSONFormatter())
            root.addHandler(file_handler)

    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return ``dabscan.<name>``; applies the default configuration on first use."""
    if not _configured:
        configure_logging()
    if name == "__main__":
        name = "main"
    if name != _root_logger_name and not name.startswith(_root_logger_name + "."):
        name = f"{_root_logger_name}.{name}"
    return logging.getLogger(name)


def log_exception(
    logger: logging.Logger,
    message: str,
    *,
    error_type: Optional[str] = None,
    **extra: Any,
) -> None:
    """Log the exception being handled, tagged with ``error_type``; call from an except block."""
    if error_type:
        extra["error_type"] = error_type
    logger.exception(message, extra=extra)
