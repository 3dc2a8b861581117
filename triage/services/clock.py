# triage/services/clock.py
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional

_NUMERIC = re.compile(r"^-?\d+(\.\d+)?$")


def utcnow() -> datetime:
    """The only wall-clock read in the package. Everything else takes `now`."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def parse_ts(value: Any) -> Optional[datetime]:
    """
    Accept ISO8601 (with/without 'Z'), UNIX seconds/ms, or datetime.
    Returns aware UTC datetime or None if invalid.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return as_utc(value)

    if isinstance(value, (int, float)):
        # treat large numbers as ms
        ts = float(value) / 1000.0 if value > 1e12 else float(value)
        try:
            return datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        s = value.strip()
        if _NUMERIC.match(s):
            # epoch seconds/ms passed as text (query strings, CLI args)
            return parse_ts(float(s))
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(s))
        except ValueError:
            return None

    return None


def elapsed_ms(then: datetime, now: datetime) -> float:
    """Milliseconds from `then` to `now`, never negative."""
    return max(0.0, (as_utc(now) - as_utc(then)).total_seconds() * 1000.0)
