# triage/services/priority.py
"""
Dynamic priority score for the responder queue.

score = severity base + recency bonus + upvote bonus + verification bonus,
then dampened by lifecycle status and clamped to [0, 100]. Pure: the same
incident and `now` always give the same score.
"""
from __future__ import annotations

import math
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from triage.models.incident import (
    ACTIVE_STATUSES,
    Incident,
    ScoredIncident,
    Severity,
    Status,
)
from triage.services.clock import elapsed_ms, utcnow
from triage.services.geo import haversine_m

# Base score per severity
SEVERITY_SCORES: Dict[Severity, int] = {
    Severity.CRITICAL: 100,
    Severity.HIGH: 70,
    Severity.MEDIUM: 40,
    Severity.LOW: 10,
}
DEFAULT_SEVERITY_SCORE = SEVERITY_SCORES[Severity.MEDIUM]

RECENCY_MAX_BONUS = 30
RECENCY_STEP = 5            # points lost per bucket
RECENCY_BUCKET_MINUTES = 10

UPVOTE_POINTS = 2
UPVOTE_CAP = 20

VERIFIED_BONUS = 15

# Multipliers applied to the running total (result floored)
STATUS_DAMPENING: Dict[Status, float] = {
    Status.IN_PROGRESS: 0.7,
    Status.DISPATCHED: 0.7,
    Status.RESOLVED: 0.3,
    Status.CLOSED: 0.3,
}

SCORE_MIN = 0
SCORE_MAX = 100


def severity_score(incident: Incident) -> int:
    return SEVERITY_SCORES.get(incident.severity_level, DEFAULT_SEVERITY_SCORE)


def recency_bonus(incident: Incident, now: datetime) -> int:
    """
    30 points under 10 minutes, minus 5 per further 10-minute bucket, 0 from 60 minutes.
    A missing timestamp counts as brand new.
    """
    if incident.timestamp is None:
        return RECENCY_MAX_BONUS
    minutes_ago = int(elapsed_ms(incident.timestamp, now) // 60000)
    return max(0, RECENCY_MAX_BONUS - (minutes_ago // RECENCY_BUCKET_MINUTES) * RECENCY_STEP)


def upvote_bonus(incident: Incident) -> int:
    return min(UPVOTE_CAP, max(0, incident.upvotes) * UPVOTE_POINTS)


def score_priority(incident: Incident, now: Optional[datetime] = None) -> int:
    if now is None:
        now = utcnow()

    score = severity_score(incident)
    score += recency_bonus(incident, now)
    score += upvote_bonus(incident)
    if incident.verified:
        score += VERIFIED_BONUS

    factor = STATUS_DAMPENING.get(incident.status_level)
    if factor is not None:
        score = math.floor(score * factor)

    return min(SCORE_MAX, max(SCORE_MIN, score))


def rank_incidents(
    incidents: Iterable[Incident],
    now: Optional[datetime] = None,
    *,
    limit: Optional[int] = None,
    open_only: bool = False,
    origin: Optional[Tuple[float, float]] = None,
) -> List[ScoredIncident]:
    """
    Score every incident and sort by score, highest first. The sort is stable,
    so incidents with equal scores keep the order they were given in.
    When `origin` (lat, lng) is set, each entry carries its distance to it.
    """
    if now is None:
        now = utcnow()

    scored: List[ScoredIncident] = []
    for inc in incidents:
        if open_only and inc.is_terminal:
            continue
        distance = None
        if origin is not None and inc.point is not None:
            distance = haversine_m(origin[0], origin[1], inc.point[0], inc.point[1])
        scored.append(ScoredIncident(incident=inc, priority=score_priority(inc, now), distance_m=distance))

    scored.sort(key=lambda s: s.priority, reverse=True)
    if limit is not None:
        scored = scored[: max(0, limit)]
    return scored


def queue_stats(incidents: Iterable[Incident]) -> Dict[str, int]:
    """Header counters of the responder queue."""
    critical = active = pending = 0
    for inc in incidents:
        if inc.severity_level is Severity.CRITICAL:
            critical += 1
        status = inc.status_level
        if status in ACTIVE_STATUSES:
            active += 1
        if status is Status.REPORTED:
            pending += 1
    return {"critical": critical, "active": active, "pending": pending}
