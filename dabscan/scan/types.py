"""Dataclasses produced by a channel scan."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class ChannelOutcome(str, Enum):
    NO_SIGNAL = "no_signal"
    NO_SYNC = "no_sync"
    RECORDED = "recorded"


@dataclass(frozen=True)
class ServiceInfo:
    sid: int
    label: str
    bitrate_kbps: int = 0


@dataclass(frozen=True)
class ScanResult:
    channel: str
    frequency_hz: int
    ensemble_label: str
    ensemble_id: int
    snr_db: float
    services: Tuple[ServiceInfo, ...] = ()
