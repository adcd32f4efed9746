#!/usr/bin/env python3
"""
dab-scan: sequential DAB channel scan with a JSON ensemble/service report.

Thin CLI shim around dabscan.cli.

Run:
    python dab-scan.py --engine mypkg.welle:make_receiver --driver rtlsdr -o scan.json
    python dab-scan.py --driver simulated --scenario examples.json --channels 5A,5B

Environment:
    DABSCAN_SYNC_TIMEOUT      Default per-channel sync timeout in seconds (10)
    DABSCAN_DRIVER            Default tuner driver (rtlsdr)
    DABSCAN_ENGINE            Default engine factory spec
    DABSCAN_LOG_LEVEL         Log level (INFO); DABSCAN_DEBUG=1 forces DEBUG
"""
from __future__ import annotations

import sys

from dabscan.cli import main


if __name__ == "__main__":
    sys.exit(main())
