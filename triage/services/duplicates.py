# triage/services/duplicates.py
"""
Pre-submission duplicate check.

A prior incident is a candidate when it has the same type, is not resolved or
closed, was reported within the last 2 hours and lies within 500 m of the
draft. Each candidate gets a confidence in [0, 100] that averages a distance
score and a time score, both linear over the same radius and window.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from triage.models.incident import DuplicateMatch, Incident, IncidentDraft
from triage.services.clock import elapsed_ms, utcnow
from triage.services.geo import haversine_m

log = logging.getLogger(__name__)

LOOKBACK_WINDOW = timedelta(hours=2)
MATCH_RADIUS_M = 500.0

WINDOW_MS = LOOKBACK_WINDOW.total_seconds() * 1000.0
# 100 points spread over the radius / the window
METERS_PER_POINT = MATCH_RADIUS_M / 100.0      # 5 m
MS_PER_POINT = WINDOW_MS / 100.0               # 72,000 ms


def distance_score(distance_m: float) -> float:
    return max(0.0, 100.0 - distance_m / METERS_PER_POINT)


def time_score(age_ms: float) -> float:
    return max(0.0, 100.0 - age_ms / MS_PER_POINT)


def confidence(distance_m: float, age_ms: float) -> int:
    # half-up rounding
    value = math.floor((distance_score(distance_m) + time_score(age_ms)) / 2.0 + 0.5)
    return min(100, max(0, int(value)))


def find_duplicates(
    draft: IncidentDraft,
    pool: Iterable[Incident],
    now: Optional[datetime] = None,
) -> List[DuplicateMatch]:
    """
    Return the pool incidents that look like the same event as `draft`,
    highest confidence first (ties keep pool order).

    A draft without a usable location is never matched: the check is skipped
    and an empty list is returned so the report can still be submitted.
    Candidates without a timestamp or a usable location are ignored.
    """
    if now is None:
        now = utcnow()

    origin = draft.point
    if origin is None:
        log.info("Duplicate check skipped: draft %s report has no usable location", draft.type)
        return []

    matches: List[DuplicateMatch] = []
    for inc in pool:
        if inc.type != draft.type or inc.is_terminal:
            continue
        if inc.timestamp is None:
            continue
        age = elapsed_ms(inc.timestamp, now)
        if age > WINDOW_MS:
            continue
        point = inc.point
        if point is None:
            continue
        dist = haversine_m(origin[0], origin[1], point[0], point[1])
        if dist > MATCH_RADIUS_M:
            continue
        matches.append(DuplicateMatch(incident=inc, confidence=confidence(dist, age), distance_m=dist))

    matches.sort(key=lambda m: m.confidence, reverse=True)
    return matches
