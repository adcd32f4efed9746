"""Time utilities shared across dabscan components."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utc_now_str() -> str:
    """Return the current UTC timestamp as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def utc_report_stamp(now: Optional[datetime] = None) -> str:
    """Return a second-precision ISO-8601 UTC stamp such as 2024-05-01T12:00:00Z."""
    moment = now if now is not None else datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
