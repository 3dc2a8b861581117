# triage/services/heatmap.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List

from triage.models.incident import Incident, Severity
from triage.services.geo import hex_boundary, point_to_hex

# Heat intensity per severity
SEVERITY_INTENSITY: Dict[Severity, float] = {
    Severity.CRITICAL: 1.0,
    Severity.HIGH: 0.8,
    Severity.MEDIUM: 0.5,
    Severity.LOW: 0.3,
}
DEFAULT_INTENSITY = 0.5


def intensity(incident: Incident) -> float:
    return SEVERITY_INTENSITY.get(incident.severity_level, DEFAULT_INTENSITY)


def heatmap_points(incidents: Iterable[Incident]) -> List[List[float]]:
    """[[lat, lng, intensity], ...]; incidents without a usable location are skipped."""
    points: List[List[float]] = []
    for inc in incidents:
        p = inc.point
        if p is None:
            continue
        points.append([p[0], p[1], intensity(inc)])
    return points


def zone_intensity(incidents: Iterable[Incident], resolution: int = 9) -> List[Dict[str, Any]]:
    """
    Bucket the heatmap points into H3 cells. Each zone keeps the strongest
    intensity seen in it and how many incidents fell inside.
    """
    zones: Dict[str, Dict[str, Any]] = {}
    for lat, lng, weight in heatmap_points(incidents):
        zone_id = point_to_hex(lat, lng, resolution)
        zone = zones.get(zone_id)
        if zone is None:
            zones[zone_id] = {"zone_id": zone_id, "count": 1, "intensity": weight}
        else:
            zone["count"] += 1
            zone["intensity"] = max(zone["intensity"], weight)

    out = sorted(zones.values(), key=lambda z: (z["intensity"], z["count"]), reverse=True)
    for zone in out:
        zone["boundary"] = hex_boundary(zone["zone_id"])
    return out
