"""High-level runner that binds CLI args to catalog, tuner, engine and report."""

from __future__ import annotations

import sys
from typing import Any, Dict, List, Optional

from dabscan.channels.catalog import ChannelCatalog
from dabscan.drivers.rtlsdr import RTLSDRTuner
from dabscan.drivers.soapy import SoapyTuner
from dabscan.engine.base import EngineFactory
from dabscan.engine.loader import load_engine_factory
from dabscan.engine.simulated import SimulatedTuner, load_scenarios
from dabscan.report.builder import write_report
from dabscan.scan.scanner import ChannelScanner
from dabscan.scan.types import ScanResult
from dabscan.util.logging import get_logger
from dabscan.util.scan_logger import ScanLogger

logger = get_logger(__name__)


class TunerOpenError(RuntimeError):
    pass


class TunerFaultError(RuntimeError):
    pass


class ReportWriteError(RuntimeError):
    pass


def parse_kv_pairs(text: Optional[str]) -> Dict[str, str]:
    """Parse 'a=1,b=2' into a dict; items without '=' are ignored."""
    pairs: Dict[str, str] = {}
    for kv in str(text or "").split(","):
        if "=" in kv:
            k, v = kv.split("=", 1)
            pairs[k.strip()] = v.strip()
    return pairs


class ScanRunner:
    """Bind CLI args to the channel scanner and the report sink."""

    def __init__(self, args):
        self.args = args
        self.catalog = self._build_catalog()
        self.scan_logger = ScanLogger.from_path(args.jsonl) if getattr(args, "jsonl", None) else None
        self.tuner: Any = None

    def _build_catalog(self) -> ChannelCatalog:
        path = getattr(self.args, "catalog", None)
        self.full_catalog = ChannelCatalog.from_csv(path) if path else ChannelCatalog()
        subset = getattr(self.args, "channels", None)
        if subset:
            return self.full_catalog.select(str(subset).split(","))
        return self.full_catalog

    def _engine_options(self) -> Dict[str, str]:
        options: Dict[str, str] = {}
        for item in getattr(self.args, "engine_opt", None) or []:
            options.update(parse_kv_pairs(item))
        return options

    def _select_tuner(self):
        args = self.args
        if args.driver == "simulated":
            scenarios = load_scenarios(args.scenario, self.full_catalog) if getattr(args, "scenario", None) else {}
            return SimulatedTuner(scenarios, samp_rate=args.samp_rate)

        try:
            if args.driver == "rtlsdr_native":
                return RTLSDRTuner(samp_rate=args.samp_rate, gain=args.gain)
            soapy_args = parse_kv_pairs(args.soapy_args) if getattr(args, "soapy_args", None) else None
            try:
                return SoapyTuner(driver=args.driver, samp_rate=args.samp_rate, gain=args.gain, soapy_args=soapy_args)
            except RuntimeError as exc:
                if args.driver != "rtlsdr":
                    raise
                logger.warning("SoapySDR rtlsdr open failed (%s); falling back to native librtlsdr", exc)
                return RTLSDRTuner(samp_rate=args.samp_rate, gain=args.gain)
        except Exception as exc:
            raise TunerOpenError(f"Could not open tuner (driver={args.driver}): {exc}") from exc

    def _write_report(self, results: List[ScanResult]) -> None:
        output = getattr(self.args, "output", "-") or "-"
        try:
            if output == "-":
                write_report(sys.stdout, results, len(self.catalog))
            else:
                with open(output, "w", encoding="utf-8") as fh:
                    write_report(fh, results, len(self.catalog))
        except OSError as exc:
            raise ReportWriteError(f"Could not write report to {output}: {exc}") from exc
        logger.info("report written to %s", "stdout" if output == "-" else output)

    def _close_tuner(self) -> None:
        """Close the tuner; a failure is logged and never replaces the scan outcome."""
        close = getattr(self.tuner, "close", None)
        if close is None:
            return
        try:
            close()
        except Exception as exc:
            logger.warning("tuner close failed: %s", exc, extra={"error_type": "tuner_close"})

    def run(self) -> List[ScanResult]:
        engine_factory: EngineFactory = load_engine_factory(self.args.engine)
        self.tuner = self._select_tuner()
        logger.info(
            "scanning %d channels with %s (sync timeout %.1f s)",
            len(self.catalog),
            getattr(self.tuner, "device", type(self.tuner).__name__),
            self.args.timeout,
        )
        try:
            scanner = ChannelScanner(
                engine_factory,
                self.tuner,
                engine_options=self._engine_options(),
                sync_timeout_s=self.args.timeout,
                scan_logger=self.scan_logger,
            )
            results = scanner.run(self.catalog)
        except OSError as exc:
            raise TunerFaultError(f"Tuner failed during scan: {exc}") from exc
        finally:
            self._close_tuner()
        self._write_report(results)
        return results


def run_scan(args) -> List[ScanResult]:
    runner = ScanRunner(args)
    return runner.run()
