"""DAB channel table loading and cursor helpers."""

from __future__ import annotations

import csv
import os
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Channel:
    channel_id: str
    frequency_hz: int


# Band III (5A-13F) followed by L-Band (LA-LP), ETSI EN 300 401 raster.
_DEFAULT_TABLE: Tuple[Tuple[str, int], ...] = (
    ("5A", 174_928_000), ("5B", 176_640_000), ("5C", 178_352_000), ("5D", 180_064_000),
    ("6A", 181_936_000), ("6B", 183_648_000), ("6C", 185_360_000), ("6D", 187_072_000),
    ("7A", 188_928_000), ("7B", 190_640_000), ("7C", 192_352_000), ("7D", 194_064_000),
    ("8A", 195_936_000), ("8B", 197_648_000), ("8C", 199_360_000), ("8D", 201_072_000),
    ("9A", 202_928_000), ("9B", 204_640_000), ("9C", 206_352_000), ("9D", 208_064_000),
    ("10A", 209_936_000), ("10N", 210_096_000), ("10B", 211_648_000), ("10C", 213_360_000),
    ("10D", 215_072_000),
    ("11A", 216_928_000), ("11N", 217_088_000), ("11B", 218_640_000), ("11C", 220_352_000),
    ("11D", 222_064_000),
    ("12A", 223_936_000), ("12N", 224_096_000), ("12B", 225_648_000), ("12C", 227_360_000),
    ("12D", 229_072_000),
    ("13A", 230_784_000), ("13B", 232_496_000), ("13C", 234_208_000), ("13D", 235_776_000),
    ("13E", 237_488_000), ("13F", 239_200_000),
    ("LA", 1_452_960_000), ("LB", 1_454_672_000), ("LC", 1_456_384_000), ("LD", 1_458_096_000),
    ("LE", 1_459_808_000), ("LF", 1_461_520_000), ("LG", 1_463_232_000), ("LH", 1_464_944_000),
    ("LI", 1_466_656_000), ("LJ", 1_468_368_000), ("LK", 1_470_080_000), ("LL", 1_471_792_000),
    ("LM", 1_473_504_000), ("LN", 1_475_216_000), ("LO", 1_476_928_000), ("LP", 1_478_640_000),
)


class ChannelCatalog:
    """Ordered channel table with a forward-only cursor.

    ``first_channel()`` rewinds the cursor, ``next_channel()`` advances it and
    returns ``END`` once the table is exhausted.
    """

    END = ""

    def __init__(self, channels: Optional[Iterable[Tuple[str, int]]] = None):
        source = _DEFAULT_TABLE if channels is None else channels
        self.channels: List[Channel] = [Channel(str(cid), int(freq)) for cid, freq in source]
        self._index: Dict[str, int] = {}
        for idx, ch in enumerate(self.channels):
            if ch.channel_id in self._index:
                raise ValueError(f"Duplicate channel id '{ch.channel_id}'")
            self._index[ch.channel_id] = idx
        self._cursor = 0

    @classmethod
    def from_csv(cls, path: str) -> "ChannelCatalog":
        if not os.path.exists(path):
            raise ValueError(f"Channel table not found: {path}")
        rows: List[Tuple[str, int]] = []
        with open(path, newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            for row in reader:
                cid = (row.get("channel") or "").strip()
                freq = row.get("frequency_hz") or row.get("freq_hz")
                if not cid or freq is None:
                    continue
                try:
                    rows.append((cid, int(float(freq))))
                except ValueError:
                    continue
        if not rows:
            raise ValueError(f"Channel table {path} has no usable rows (need channel,frequency_hz)")
        return cls(rows)

    def select(self, channel_ids: Sequence[str]) -> "ChannelCatalog":
        """Return a catalog restricted to ``channel_ids``, keeping table order."""
        by_upper = {cid.upper(): cid for cid in self._index}
        requested = {cid.strip().upper() for cid in channel_ids if cid.strip()}
        unknown = sorted(requested - set(by_upper))
        if unknown:
            raise ValueError(f"Unknown channel(s): {', '.join(unknown)}")
        wanted = {by_upper[key] for key in requested}
        return ChannelCatalog((ch.channel_id, ch.frequency_hz) for ch in self.channels if ch.channel_id in wanted)

    def __len__(self) -> int:
        return len(self.channels)

    def __iter__(self) -> Iterator[Channel]:
        return iter(self.channels)

    def first_channel(self) -> str:
        self._cursor = 0
        return self.channels[0].channel_id if self.channels else self.END

    def next_channel(self) -> str:
        if self._cursor < len(self.channels):
            self._cursor += 1
        if self._cursor >= len(self.channels):
            return self.END
        return self.channels[self._cursor].channel_id

    def frequency(self, channel_id: str) -> int:
        try:
            return self.channels[self._index[channel_id]].frequency_hz
        except KeyError:
            raise ValueError(f"Unknown channel '{channel_id}'") from None

    def to_json(self) -> List[Dict[str, object]]:
        return [{"channel": ch.channel_id, "frequency_hz": ch.frequency_hz} for ch in self.channels]
