from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import BASE_LAT, BASE_LNG, NOW, make_incident
from triage.models.incident import IncidentDraft
from triage.services.duplicates import (
    LOOKBACK_WINDOW,
    MATCH_RADIUS_M,
    MS_PER_POINT,
    confidence,
    distance_score,
    find_duplicates,
    time_score,
)
from triage.services.geo import haversine_m

# ~0.0045 deg of latitude is ~500 m
METERS_PER_DEG_LAT = 111194.93


def draft(type="Fire", lat=BASE_LAT, lng=BASE_LNG):
    location = {"lat": lat, "lng": lng} if lat is not None else None
    return IncidentDraft(type=type, location=location)


def north_of_base(meters):
    return BASE_LAT + meters / METERS_PER_DEG_LAT


def test_constants():
    assert LOOKBACK_WINDOW == timedelta(hours=2)
    assert MATCH_RADIUS_M == 500.0
    assert MS_PER_POINT == 72000.0


def test_empty_pool():
    assert find_duplicates(draft(), [], NOW) == []


def test_other_types_never_match():
    pool = [make_incident(id=str(i), type=t) for i, t in enumerate(["Accident", "Medical", "Crime"])]
    assert find_duplicates(draft("Fire"), pool, NOW) == []


def test_same_spot_same_moment_is_full_confidence():
    matches = find_duplicates(draft(), [make_incident()], NOW)
    assert len(matches) == 1
    assert matches[0].confidence == 100
    assert matches[0].distance_m == pytest.approx(0.0, abs=1e-6)


def test_three_hours_old_is_excluded():
    assert find_duplicates(draft(), [make_incident(minutes_ago=180)], NOW) == []


def test_window_edge_is_included():
    matches = find_duplicates(draft(), [make_incident(minutes_ago=120)], NOW)
    assert len(matches) == 1
    # time score 0, distance score 100
    assert matches[0].confidence == 50


def test_600_meters_is_excluded():
    far = make_incident(lat=north_of_base(600))
    assert find_duplicates(draft(), [far], NOW) == []


def test_just_inside_radius_is_half_confidence():
    edge = make_incident(lat=north_of_base(499.5))
    matches = find_duplicates(draft(), [edge], NOW)
    assert len(matches) == 1
    assert matches[0].distance_m <= MATCH_RADIUS_M
    assert matches[0].confidence == 50


def test_boundary_scores():
    assert distance_score(500.0) == 0.0
    assert distance_score(0.0) == 100.0
    assert distance_score(800.0) == 0.0
    assert time_score(0.0) == 100.0
    assert time_score(LOOKBACK_WINDOW.total_seconds() * 1000) == 0.0
    assert confidence(500.0, 0.0) == 50
    assert confidence(0.0, 0.0) == 100


def test_terminal_incidents_are_excluded():
    pool = [make_incident(id="r", status="Resolved"), make_incident(id="c", status="Closed")]
    assert find_duplicates(draft(), pool, NOW) == []


def test_in_progress_incidents_still_match():
    matches = find_duplicates(draft(), [make_incident(status="In Progress")], NOW)
    assert len(matches) == 1


def test_candidates_without_timestamp_or_location_are_dropped():
    pool = [
        make_incident(id="no-ts", minutes_ago=None),
        make_incident(id="no-loc", lat=None),
        make_incident(id="bad-loc", lat=95.0),
    ]
    assert find_duplicates(draft(), pool, NOW) == []


def test_draft_without_location_short_circuits():
    assert find_duplicates(draft(lat=None), [make_incident()], NOW) == []


def test_draft_with_garbage_location_short_circuits():
    bad = IncidentDraft(type="Fire", location={"lat": "north", "lng": None})
    assert bad.point is None
    assert find_duplicates(bad, [make_incident()], NOW) == []


def test_future_candidate_gets_age_zero():
    matches = find_duplicates(draft(), [make_incident(minutes_ago=-5)], NOW)
    assert matches[0].confidence == 100


def test_concrete_bengaluru_scenario():
    candidate = make_incident(lat=12.9720, lng=77.5950, minutes_ago=10)
    matches = find_duplicates(draft(lat=12.9716, lng=77.5946), [candidate], NOW)
    assert len(matches) == 1
    m = matches[0]
    assert m.distance_m == pytest.approx(haversine_m(12.9716, 77.5946, 12.9720, 77.5950))
    assert 50 < m.distance_m < 70
    assert m.confidence == 90


def test_sorted_by_confidence_then_pool_order():
    pool = [
        make_incident(id="old", minutes_ago=90),
        make_incident(id="twin-a", minutes_ago=30),
        make_incident(id="fresh", minutes_ago=1),
        make_incident(id="twin-b", minutes_ago=30),
    ]
    ids = [m.incident.id for m in find_duplicates(draft(), pool, NOW)]
    assert ids == ["fresh", "twin-a", "twin-b", "old"]


def test_type_matching_ignores_case():
    matches = find_duplicates(draft("fire"), [make_incident(type="FIRE")], NOW)
    assert len(matches) == 1


def test_pool_is_not_mutated():
    pool = [make_incident(id="a"), make_incident(id="b", type="Medical")]
    before = [p.model_dump() for p in pool]
    find_duplicates(draft(), pool, NOW)
    assert [p.model_dump() for p in pool] == before


def test_confidence_rounds_half_up():
    # (65 + 100) / 2 == 82.5
    assert confidence(175.0, 0.0) == 83
    # (75 + 50) / 2 == 62.5
    assert confidence(125.0, 3_600_000.0) == 63
