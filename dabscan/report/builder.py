"""JSON scan report assembly."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, TextIO

from dabscan.scan.types import ScanResult
from dabscan.util.time import utc_report_stamp


def hex_id(value: int, width: int = 4) -> str:
    """Render an identifier as 0x-prefixed uppercase hex, zero-padded to ``width``.

    Values wider than ``width`` digits are not truncated.
    """
    return f"0x{int(value):0{width}X}"


def build_report(
    results: Sequence[ScanResult],
    total_channels: int,
    *,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    entries: List[Dict[str, Any]] = []
    for r in results:
        entries.append(
            {
                "channel": r.channel,
                "frequency_hz": int(r.frequency_hz),
                "ensemble": {"id": hex_id(r.ensemble_id), "label": r.ensemble_label},
                "snr_db": float(r.snr_db),
                "services": [
                    {"sid": hex_id(s.sid), "label": s.label, "bitrate_kbps": int(s.bitrate_kbps)}
                    for s in r.services
                ],
            }
        )
    return {
        "scan": {
            "timestamp": utc_report_stamp(now),
            "channels_scanned": int(total_channels),
            "ensembles_found": len(results),
        },
        "results": entries,
    }


def render_report(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def write_report(
    out: TextIO,
    results: Sequence[ScanResult],
    total_channels: int,
    *,
    now: Optional[datetime] = None,
) -> None:
    """Write the report for ``results`` to ``out`` (2-space indent, trailing newline)."""
    out.write(render_report(build_report(results, total_channels, now=now)))
    out.flush()
