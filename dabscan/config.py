"""
Configuration defaults and environment parsing for dabscan.

All DABSCAN_* environment variables are parsed here and exported as module-level
constants. The CLI imports from this module rather than reading os.environ
directly.
"""
from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    """Parse an integer from environment, returning default on missing/invalid."""
    val = os.getenv(name)
    if not val:
        return default
    try:
        return max(1, int(float(val)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    """Parse a positive float from environment, returning default on missing/invalid."""
    val = os.getenv(name)
    if not val:
        return default
    try:
        parsed = float(val)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


# ---------------------------------------------------------------------------
# Scan behaviour
# ---------------------------------------------------------------------------
SYNC_TIMEOUT_S: float = _float_env("DABSCAN_SYNC_TIMEOUT", 10.0)
"""Seconds to wait for full sync on a channel where a signal was detected."""


# ---------------------------------------------------------------------------
# Device & engine
# ---------------------------------------------------------------------------
SAMPLE_RATE_HZ: int = _int_env("DABSCAN_SAMPLE_RATE", 2_048_000)
"""Tuner sample rate; DAB demodulators expect 2.048 MS/s."""

DRIVER: str = os.getenv("DABSCAN_DRIVER", "rtlsdr")
"""Soapy driver key, 'rtlsdr_native' or 'simulated'."""

ENGINE: str = os.getenv("DABSCAN_ENGINE", "")
"""Decoding engine factory spec ('module:attr' or an alias such as 'simulated')."""
