from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from triage.db.pool import IncidentPool
from triage.main import app
from triage.models.incident import Incident
from triage.routes.deps import get_backend, get_pool
from triage.services.backend_client import BackendError

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

# Bengaluru, MG Road
BASE_LAT, BASE_LNG = 12.9716, 77.5946


def make_incident(
    id="inc-1",
    type="Fire",
    severity="Medium",
    status="Reported",
    lat=BASE_LAT,
    lng=BASE_LNG,
    minutes_ago=0.0,
    upvotes=0,
    verified=False,
    now=NOW,
    **extra,
) -> Incident:
    data = {
        "_id": id,
        "type": type,
        "severity": severity,
        "status": status,
        "location": {"lat": lat, "lng": lng} if lat is not None else None,
        "timestamp": (now - timedelta(minutes=minutes_ago)).isoformat() if minutes_ago is not None else None,
        "upvotes": upvotes,
        "verified": verified,
    }
    data.update(extra)
    return Incident.model_validate(data)


@pytest.fixture
def now():
    return NOW


class FakeBackend:
    """Stands in for the remote incident backend in route tests."""

    def __init__(self):
        self.reported = []
        self.upvotes = {}
        self.incidents = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise BackendError("Backend unreachable: boom")

    def report_incident(self, payload):
        self._check()
        self.reported.append(payload)
        return Incident.model_validate({
            "_id": f"new-{len(self.reported)}",
            "type": payload["type"],
            "severity": "High",
            "status": "Reported",
            "location": payload.get("location"),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "description": payload.get("description", ""),
        })

    def upvote_incident(self, incident_id):
        self._check()
        self.upvotes[incident_id] = self.upvotes.get(incident_id, 0) + 1
        return self.upvotes[incident_id]

    def list_incidents(self, **filters):
        self._check()
        return list(self.incidents)

    def update_status(self, incident_id, status, notes=""):
        self._check()
        return make_incident(id=incident_id, status=status, now=datetime.now(timezone.utc))

    def verify_incident(self, incident_id):
        self._check()
        return make_incident(id=incident_id, status="Verified", verified=True, now=datetime.now(timezone.utc))


@pytest.fixture
def pool():
    return IncidentPool()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def client(pool, backend):
    app.dependency_overrides[get_pool] = lambda: pool
    app.dependency_overrides[get_backend] = lambda: backend
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
