#!/usr/bin/env python3
"""dabscan CLI entrypoint (package module)."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, List, Optional, Set

from dabscan import config
from dabscan.channels.catalog import ChannelCatalog
from dabscan.drivers.rtlsdr import HAVE_RTLSDR
from dabscan.drivers.soapy import HAVE_SOAPY
from dabscan.engine.loader import EngineLoadError
from dabscan.scan.runner import ReportWriteError, TunerFaultError, TunerOpenError, run_scan
from dabscan.util.duration import positive_duration
from dabscan.util.exit_codes import ExitCode
from dabscan.util.logging import configure_logging, get_logger, log_exception


def run(args: argparse.Namespace) -> None:
    """Top-level CLI dispatcher that delegates execution to scan.runner."""
    if getattr(args, "list_channels", False):
        _emit_channels_json(args)
        return
    run_scan(args)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    if argv is None:
        argv = sys.argv[1:]

    p = argparse.ArgumentParser(
        description="Scan every DAB channel, wait for ensemble sync and report the services found",
        argument_default=argparse.SUPPRESS,
    )
    p.add_argument(
        "--timeout",
        type=positive_duration,
        help=f"Per-channel sync timeout, seconds or duration like '15s' (default {config.SYNC_TIMEOUT_S:g})",
    )
    p.add_argument("-o", "--output", type=str, help="Write the JSON report here instead of stdout ('-')")
    p.add_argument("--channels", type=str, help="Comma-separated subset of channel ids to scan (e.g. '5A,11D,12B')")
    p.add_argument("--catalog", type=str, help="CSV channel table with channel,frequency_hz columns")
    p.add_argument("--list-channels", dest="list_channels", action="store_true", help="Print the channel table as JSON and exit")

    p.add_argument(
        "--driver",
        type=str,
        help=f"Soapy driver key, 'rtlsdr_native' for direct librtlsdr, or 'simulated' (default {config.DRIVER})",
    )
    p.add_argument("--soapy-args", dest="soapy_args", type=str, help="Comma-separated Soapy device args (e.g. 'serial=00000001')")
    p.add_argument("--gain", type=str, help='Gain in dB or "auto" (default auto)')
    p.add_argument("--samp-rate", dest="samp_rate", type=float, help=f"Sample rate [Hz] (default {config.SAMPLE_RATE_HZ})")

    p.add_argument("--engine", type=str, help="Decoding engine factory 'package.module:factory' or 'simulated'")
    p.add_argument(
        "--engine-opt",
        dest="engine_opt",
        action="append",
        help="Engine option key=value, forwarded to the engine factory (repeatable)",
    )
    p.add_argument("--scenario", type=str, help="JSON scenario file describing what is on air (simulated driver only)")

    p.add_argument("--jsonl", type=str, help="Append per-channel scan events as line-delimited JSON to this path")
    p.add_argument("--log-level", dest="log_level", type=str, help="DEBUG, INFO, WARNING or ERROR (default INFO)")
    p.add_argument("--log-json", dest="log_json", type=str, help="Also write JSON-formatted logs to this file")

    args = p.parse_args(argv)
    args._cli_overrides = set()

    _set_default(args, args._cli_overrides, "timeout", config.SYNC_TIMEOUT_S)
    _set_default(args, args._cli_overrides, "output", "-")
    _set_default(args, args._cli_overrides, "channels", None)
    _set_default(args, args._cli_overrides, "catalog", None)
    _set_default(args, args._cli_overrides, "list_channels", False)
    _set_default(args, args._cli_overrides, "driver", config.DRIVER)
    _set_default(args, args._cli_overrides, "soapy_args", None)
    _set_default(args, args._cli_overrides, "gain", "auto")
    _set_default(args, args._cli_overrides, "samp_rate", float(config.SAMPLE_RATE_HZ))
    _set_default(args, args._cli_overrides, "engine", config.ENGINE or None)
    _set_default(args, args._cli_overrides, "engine_opt", [])
    _set_default(args, args._cli_overrides, "scenario", None)
    _set_default(args, args._cli_overrides, "jsonl", None)
    _set_default(args, args._cli_overrides, "log_level", None)
    _set_default(args, args._cli_overrides, "log_json", None)

    if args.engine is None and args.driver == "simulated":
        args.engine = "simulated"

    if hasattr(args, "_cli_overrides"):
        delattr(args, "_cli_overrides")

    if not args.list_channels:
        if not args.engine:
            p.error("--engine is required (a 'package.module:factory' decoding engine, or 'simulated')")
        if args.engine == "simulated" and args.driver != "simulated":
            p.error("--engine simulated only works with --driver simulated")
        if args.scenario and args.driver != "simulated":
            p.error("--scenario requires --driver simulated")
        if args.driver == "rtlsdr_native" and not HAVE_RTLSDR:
            p.error("pyrtlsdr not installed. Install with: pip3 install pyrtlsdr")
        if args.driver not in ("simulated", "rtlsdr_native") and not HAVE_SOAPY and not (args.driver == "rtlsdr" and HAVE_RTLSDR):
            p.error("python3-soapysdr not installed. Install it (or use --driver rtlsdr_native).")
        if args.gain != "auto":
            try:
                float(args.gain)
            except ValueError:
                p.error(f"--gain must be a number or 'auto' (got '{args.gain}')")
        if args.samp_rate <= 0:
            p.error("--samp-rate must be > 0")

    return args


def _set_default(args: argparse.Namespace, overrides: Set[str], attr: str, value: Any) -> None:
    if hasattr(args, attr):
        overrides.add(attr)
    else:
        setattr(args, attr, value)


def _emit_channels_json(args: argparse.Namespace) -> None:
    catalog = ChannelCatalog.from_csv(args.catalog) if args.catalog else ChannelCatalog()
    if args.channels:
        catalog = catalog.select(str(args.channels).split(","))
    print(json.dumps(catalog.to_json(), indent=2))


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(level=args.log_level, json_file=args.log_json)
    logger = get_logger(__name__)
    try:
        run(args)
    except KeyboardInterrupt:
        print("\n[scan] interrupted, no report written", file=sys.stderr)
        return ExitCode.INTERRUPTED
    except ValueError as exc:
        logger.error("%s", exc)
        return ExitCode.INVALID_ARGS
    except EngineLoadError as exc:
        logger.error("%s", exc, extra={"error_type": "engine_load"})
        return ExitCode.ENGINE_UNAVAILABLE
    except TunerOpenError:
        log_exception(logger, "tuner unavailable", error_type="tuner_open")
        return ExitCode.DEVICE_UNAVAILABLE
    except TunerFaultError:
        log_exception(logger, "tuner failed mid-scan, no report written", error_type="tuner_fault")
        return ExitCode.DEVICE_UNAVAILABLE
    except ReportWriteError:
        log_exception(logger, "report write failed", error_type="report_write")
        return ExitCode.OUTPUT_ERROR
    except Exception:
        log_exception(logger, "scan aborted", error_type="scan")
        return ExitCode.GENERAL_ERROR
    return ExitCode.SUCCESS


if __name__ == "__main__":
    sys.exit(main())
