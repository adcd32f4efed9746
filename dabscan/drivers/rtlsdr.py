"""Native librtlsdr (pyrtlsdr) tuner."""

from __future__ import annotations

from typing import Optional

import numpy as np

from dabscan.util.logging import get_logger

try:  # pragma: no cover - optional dependency
    from rtlsdr import RtlSdr  # type: ignore

    HAVE_RTLSDR = True
except Exception:  # pragma: no cover - optional dependency
    HAVE_RTLSDR = False
    RtlSdr = None  # type: ignore

logger = get_logger(__name__)


class RTLSDRTuner:
    """Convenience wrapper around pyrtlsdr.RtlSdr."""

    # Samples thrown away on reset(); ~8 ms at 2.048 MS/s covers the USB transfer queue.
    FLUSH_SAMPLES = 16 * 1024

    def __init__(self, samp_rate: float, gain: str | float, *, device_index: Optional[int] = None, serial_number: Optional[str] = None):
        if not HAVE_RTLSDR:
            raise RuntimeError("pyrtlsdr not available")
        if serial_number:
            self.dev = RtlSdr(serial_number=str(serial_number))  # type: ignore[call-arg]
        elif device_index is not None:
            self.dev = RtlSdr(device_index=int(device_index))  # type: ignore[call-arg]
        else:
            self.dev = RtlSdr()  # type: ignore[call-arg]
        self.device = "RTL-SDR (native)"
        self.dev.sample_rate = samp_rate
        if isinstance(gain, str) and gain == "auto":
            self.dev.gain = "auto"
        else:
            self.dev.gain = float(gain)

    def set_frequency(self, frequency_hz: int) -> None:
        self.dev.center_freq = int(frequency_hz)

    def reset(self) -> None:
        self.dev.read_samples(self.FLUSH_SAMPLES)

    def read(self, count: int) -> np.ndarray:
        return np.asarray(self.dev.read_samples(count), dtype=np.complex64)

    def close(self) -> None:
        try:
            self.dev.close()
        except Exception as exc:
            logger.warning("librtlsdr close failed: %s", exc, extra={"error_type": "tuner_close"})
