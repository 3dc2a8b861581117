# triage/services/stats.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional

from triage.models.incident import Incident, IncidentType, Severity, Status
from triage.services.clock import as_utc, utcnow

RECENT_WINDOW = timedelta(hours=24)


def incident_stats(incidents: Iterable[Incident], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Dashboard counters over a pool snapshot. Unknown statuses only count
    towards `total`; unknown severities towards neither `critical` nor `high`.
    """
    if now is None:
        now = utcnow()
    now = as_utc(now)

    stats: Dict[str, Any] = {
        "total": 0,
        "critical": 0,
        "high": 0,
        "pending": 0,
        "in_progress": 0,
        "resolved": 0,
        "verified": 0,
        "last_24h": 0,
        "by_type": {t.value: 0 for t in IncidentType},
    }

    for inc in incidents:
        stats["total"] += 1
        stats["by_type"][inc.type] = stats["by_type"].get(inc.type, 0) + 1

        sev = inc.severity_level
        if sev is Severity.CRITICAL:
            stats["critical"] += 1
        elif sev is Severity.HIGH:
            stats["high"] += 1

        status = inc.status_level
        if status is Status.REPORTED:
            stats["pending"] += 1
        elif status in (Status.IN_PROGRESS, Status.DISPATCHED):
            stats["in_progress"] += 1
        elif inc.is_terminal:
            stats["resolved"] += 1

        if inc.verified:
            stats["verified"] += 1
        if inc.timestamp is not None and timedelta(0) <= now - inc.timestamp <= RECENT_WINDOW:
            stats["last_24h"] += 1

    total = stats["total"]
    stats["resolution_rate"] = int(stats["resolved"] * 100 / total) if total else 0
    return stats
