"""Structured scan event logging (JSON lines)."""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Any, List, Optional, Set

from dabscan.util.time import utc_now_str


class ScanLogger:
    def __init__(self, log_path: Path, mirror_paths: Optional[List[Path]] = None):
        self.log_path = log_path
        self.mirror_paths: List[Path] = []
        self._ensure_parent(self.log_path)
        seen: Set[str] = {str(self.log_path)}
        for mirror in mirror_paths or []:
            resolved = mirror if mirror.is_absolute() else (Path.cwd() / mirror).absolute()
            if str(resolved) in seen:
                continue
            self._ensure_parent(resolved)
            self.mirror_paths.append(resolved)
            seen.add(str(resolved))
        self.run_id = f"run-{int(time.time() * 1000)}-pid{os.getpid()}"

    @staticmethod
    def _ensure_parent(path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            pass

    @classmethod
    def from_path(cls, path: str) -> "ScanLogger":
        expanded = Path(path).expanduser()
        if not expanded.is_absolute():
            expanded = (Path.cwd() / expanded).absolute()
        return cls(expanded)

    def log(self, event: str, **fields: Any) -> None:
        record = {
            "ts": utc_now_str(),
            "run_id": self.run_id,
            "event": event,
            **fields,
        }
        line = json.dumps(record, default=str) + "\n"
        for target in [self.log_path] + self.mirror_paths:
            try:
                with target.open("a", encoding="utf-8") as fh:
                    fh.write(line)
            except OSError:
                continue
