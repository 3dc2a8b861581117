from __future__ import annotations

import json

import pytest
import requests

from triage.services.backend_client import BackendClient, BackendError


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.content = b"" if body is None else json.dumps(body).encode()
        self._body = body

    def json(self):
        return self._body


@pytest.fixture
def calls():
    return []


@pytest.fixture
def make_client(monkeypatch, calls):
    def factory(response=None, exc=None):
        client = BackendClient(base_url="http://backend.test/api/", timeout=3)

        def fake_request(method, url, timeout=None, **kwargs):
            calls.append((method, url, timeout, kwargs))
            if exc is not None:
                raise exc
            return response

        monkeypatch.setattr(client.session, "request", fake_request)
        return client

    return factory


def test_list_incidents_wrapped(make_client, calls):
    client = make_client(FakeResponse(body={"incidents": [{"_id": "a", "type": "Fire"}]}))
    items = client.list_incidents(status="Reported")
    assert [i.id for i in items] == ["a"]
    method, url, timeout, kwargs = calls[0]
    assert (method, url, timeout) == ("GET", "http://backend.test/api/incidents", 3)
    assert kwargs["params"] == {"status": "Reported"}


def test_list_incidents_bare_list(make_client):
    client = make_client(FakeResponse(body=[{"_id": "a"}, {"_id": "b"}]))
    assert len(client.list_incidents()) == 2


def test_report_incident_unwraps(make_client, calls):
    client = make_client(FakeResponse(201, {"incident": {"_id": "n", "type": "Medical", "severity": "High"}}))
    created = client.report_incident({"type": "Medical", "location": {"lat": 1, "lng": 2}})
    assert created.id == "n" and created.severity == "High"
    assert calls[0][0] == "POST"
    assert calls[0][3]["json"]["type"] == "Medical"


def test_upvote_returns_count(make_client):
    assert make_client(FakeResponse(body={"upvotes": 6})).upvote_incident("a") == 6
    assert make_client(FakeResponse(body={"incident": {"_id": "a", "upvotes": 2}})).upvote_incident("a") == 2


def test_update_status_sends_notes(make_client, calls):
    client = make_client(FakeResponse(body={"_id": "a", "status": "Dispatched"}))
    assert client.update_status("a", "Dispatched", "unit 4").status == "Dispatched"
    assert calls[0][3]["json"] == {"status": "Dispatched", "responderNotes": "unit 4"}


def test_http_error_raises_backend_error(make_client):
    with pytest.raises(BackendError) as exc:
        make_client(FakeResponse(404, {"message": "nope"})).get_incident("zzz")
    assert exc.value.status_code == 404


def test_transport_error_raises_backend_error(make_client):
    client = make_client(exc=requests.ConnectionError("refused"))
    with pytest.raises(BackendError) as exc:
        client.get_stats()
    assert exc.value.status_code is None


def test_malformed_incident_raises_backend_error(make_client):
    with pytest.raises(BackendError):
        make_client(FakeResponse(body={"type": "Fire"})).get_incident("a")


def test_delete_with_empty_body(make_client):
    assert make_client(FakeResponse(204)).delete_incident("a") is None
