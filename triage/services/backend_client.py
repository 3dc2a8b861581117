# triage/services/backend_client.py
"""
Thin REST client for the remote incident backend (storage, AI severity,
push events all live there). Synchronous; used by routers and scripts.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from triage import config
from triage.models.incident import Incident

log = logging.getLogger(__name__)


class BackendError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendClient:
    def __init__(self, base_url: str = config.BACKEND_URL, timeout: float = config.BACKEND_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            log.error("Backend %s %s failed: %s", method, path, e)
            raise BackendError(f"Backend unreachable: {e}") from e

        if r.status_code >= 400:
            log.error("Backend %s %s -> %s", method, path, r.status_code)
            raise BackendError(f"Backend error {r.status_code} on {method} {path}", r.status_code)
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise BackendError(f"Backend returned non-JSON body on {method} {path}", r.status_code) from e

    # ---------------- Reads ----------------
    def list_incidents(self, **filters) -> List[Incident]:
        data = self._request("GET", "/incidents", params=filters or None)
        # backend answers either [...] or {"incidents": [...]}
        items = data.get("incidents", []) if isinstance(data, dict) else (data or [])
        return [_incident(it) for it in items]

    def get_incident(self, incident_id: str) -> Incident:
        data = self._request("GET", f"/incidents/{incident_id}")
        return _incident(_unwrap(data))

    def get_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/incidents/stats") or {}

    # ---------------- Writes ----------------
    def report_incident(self, payload: Dict[str, Any]) -> Incident:
        data = self._request("POST", "/incidents/report", json=payload)
        return _incident(_unwrap(data))

    def upvote_incident(self, incident_id: str) -> int:
        data = self._request("PATCH", f"/incidents/{incident_id}/upvote") or {}
        count = data.get("upvotes") if isinstance(data, dict) else None
        if count is None:
            count = _unwrap(data).get("upvotes")
        try:
            return int(count)
        except (TypeError, ValueError) as e:
            raise BackendError("Backend upvote response has no upvote count") from e

    def verify_incident(self, incident_id: str) -> Incident:
        data = self._request("PATCH", f"/incidents/{incident_id}/verify")
        return _incident(_unwrap(data))

    def update_status(self, incident_id: str, status: str, notes: str = "") -> Incident:
        data = self._request(
            "PATCH",
            f"/incidents/{incident_id}/status",
            json={"status": status, "responderNotes": notes},
        )
        return _incident(_unwrap(data))

    def delete_incident(self, incident_id: str) -> None:
        self._request("DELETE", f"/incidents/{incident_id}")


def _unwrap(data: Any) -> Dict[str, Any]:
    """Accept {"incident": {...}} or the bare incident."""
    if isinstance(data, dict) and isinstance(data.get("incident"), dict):
        return data["incident"]
    if isinstance(data, dict):
        return data
    raise BackendError("Backend returned an unexpected body")


def _incident(raw: Any) -> Incident:
    try:
        return Incident.model_validate(raw)
    except ValidationError as e:
        raise BackendError(f"Backend sent a malformed incident: {e.error_count()} error(s)") from e
