# triage/services/geo.py
"""
Geometry helpers: great-circle distance plus the H3 cell helpers used by the
heatmap zones.
"""
from __future__ import annotations

import math
from typing import Any, List, Optional, Tuple

import h3  # type: ignore

EARTH_RADIUS_M = 6371000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    R = EARTH_RADIUS_M
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dl = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dl / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return R * c


def valid_coords(lat: Any, lng: Any) -> bool:
    if lat is None or lng is None or isinstance(lat, bool) or isinstance(lng, bool):
        return False
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def resolve_point(location: Any) -> Optional[Tuple[float, float]]:
    """
    Turn a Location model, a {"lat", "lng"} mapping or a (lat, lng) pair into
    a (lat, lng) tuple. Returns None when the coordinates are unusable.
    """
    if location is None:
        return None
    if isinstance(location, (tuple, list)):
        if len(location) != 2:
            return None
        lat, lng = location
    elif isinstance(location, dict):
        lat, lng = location.get("lat"), location.get("lng", location.get("lon"))
    else:
        lat, lng = getattr(location, "lat", None), getattr(location, "lng", None)
    if not valid_coords(lat, lng):
        return None
    return float(lat), float(lng)


def distance_between(a: Any, b: Any) -> Optional[float]:
    """Haversine distance in meters, or None if either side has no usable point."""
    pa, pb = resolve_point(a), resolve_point(b)
    if pa is None or pb is None:
        return None
    return haversine_m(pa[0], pa[1], pb[0], pb[1])


# ---------------- H3 ----------------
def point_to_hex(lat: float, lng: float, resolution: int = 9) -> str:
    """
    Return the H3 hex ID for (lat, lng) at the given resolution.
    Compatible with h3<4 and h3>=4.
    """
    try:  # h3 >= 4.x
        return h3.latlng_to_cell(lat, lng, resolution)
    except AttributeError:  # h3 < 4.x
        return h3.geo_to_h3(lat, lng, resolution)


def hex_boundary(hex_id: str) -> List[List[float]]:
    """Boundary vertices as [[lat, lng], ...]."""
    try:
        verts = h3.cell_to_boundary(hex_id)
    except AttributeError:
        verts = h3.h3_to_geo_boundary(hex_id)
    return [[float(lat), float(lng)] for (lat, lng) in verts]
