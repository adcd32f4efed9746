"""Contracts for the collaborators the scanner drives.

The decoding engine (OFDM demodulation, FIC parsing) and the tuner are
provided by the caller; the scanner only relies on the narrow surface below.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Mapping, Protocol

from dabscan.engine.listener import ReceiverListener


class ScanMode(str, Enum):
    """Engine start mode."""
    QUICK = "quick"  # signal-presence detection only, no FIC decoding
    FULL = "full"    # frame sync + FIC decoding


@dataclass(frozen=True)
class Service:
    service_id: int
    label: str


@dataclass(frozen=True)
class Component:
    service_id: int
    subch_id: int


@dataclass(frozen=True)
class Subchannel:
    subch_id: int
    bitrate_kbps: int

    INVALID_ID = -1

    @property
    def is_valid(self) -> bool:
        return self.subch_id != self.INVALID_ID


class Tuner(Protocol):
    def set_frequency(self, frequency_hz: int) -> None: ...

    def reset(self) -> None: ...


class ReceiverEngine(Protocol):
    def start(self, mode: ScanMode) -> None: ...

    def stop(self) -> None:
        """Stop decoding; no listener callback may fire after this returns."""
        ...

    def service_list(self) -> List[Service]: ...

    def components(self, service: Service) -> List[Component]: ...

    def subchannel(self, component: Component) -> Subchannel: ...


EngineFactory = Callable[[ReceiverListener, Tuner, Mapping[str, Any]], ReceiverEngine]
