# triage/db/pool.py
"""
In-memory mirror of the backend's incidents.

The backend owns the data; this pool is filled by a full sync and then kept
current by the backend's push events. Readers get copies, so scoring and
duplicate checks never run under the lock.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

from triage.models.incident import Incident

log = logging.getLogger(__name__)

NEW_INCIDENT = "new_incident"
UPVOTE_UPDATE = "upvote_update"
INCIDENT_UPDATED = "incident_updated"
INCIDENT_DELETED = "incident_deleted"

EVENT_TYPES = (NEW_INCIDENT, UPVOTE_UPDATE, INCIDENT_UPDATED, INCIDENT_DELETED)


class UnknownEventError(ValueError):
    pass


class IncidentPool:
    def __init__(self, incidents: Optional[Iterable[Incident]] = None):
        self._lock = threading.Lock()
        self._items: Dict[str, Incident] = {}
        self._duplicates_prevented = 0
        if incidents:
            self.replace(incidents)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def replace(self, incidents: Iterable[Incident]) -> int:
        fresh = {inc.id: inc for inc in incidents}
        with self._lock:
            self._items = fresh
        return len(fresh)

    def upsert(self, incident: Incident) -> Incident:
        """Insert or replace; a stale payload never lowers the upvote count."""
        with self._lock:
            current = self._items.get(incident.id)
            if current is not None and current.upvotes > incident.upvotes:
                incident = incident.model_copy(update={"upvotes": current.upvotes})
            self._items[incident.id] = incident
        return incident

    def get(self, incident_id: str) -> Optional[Incident]:
        with self._lock:
            return self._items.get(incident_id)

    def remove(self, incident_id: str) -> Optional[Incident]:
        with self._lock:
            return self._items.pop(incident_id, None)

    def snapshot(self) -> List[Incident]:
        with self._lock:
            return list(self._items.values())

    @property
    def duplicates_prevented(self) -> int:
        with self._lock:
            return self._duplicates_prevented

    def record_prevented_duplicate(self) -> int:
        """A reporter linked to an existing incident instead of filing a new one."""
        with self._lock:
            self._duplicates_prevented += 1
            return self._duplicates_prevented

    def set_upvotes(self, incident_id: str, upvotes: int) -> Optional[Incident]:
        """Upvotes only move forward; a stale (lower) count is ignored."""
        with self._lock:
            current = self._items.get(incident_id)
            if current is None:
                return None
            if upvotes <= current.upvotes:
                return current
            updated = current.model_copy(update={"upvotes": upvotes})
            self._items[incident_id] = updated
            return updated

    def apply_event(self, event_type: str, data: Dict[str, Any]) -> Optional[Incident]:
        """
        Apply one backend push event. Payload shapes follow the backend:
          new_incident / incident_updated: {"incident": {...}} (or the incident itself)
          upvote_update: {"incidentId": ..., "upvotes": n}
          incident_deleted: {"incidentId": ...}
        """
        if event_type not in EVENT_TYPES:
            raise UnknownEventError(f"Unknown event type: {event_type}")

        if event_type in (NEW_INCIDENT, INCIDENT_UPDATED):
            raw = data.get("incident", data)
            incident = self.upsert(Incident.model_validate(raw))
            log.debug("pool %s: %s", event_type, incident.id)
            return incident

        if event_type == UPVOTE_UPDATE:
            incident_id = str(data.get("incidentId", ""))
            try:
                upvotes = int(data.get("upvotes"))
            except (TypeError, ValueError, OverflowError):
                raise ValueError("upvote_update needs an integer 'upvotes'")
            return self.set_upvotes(incident_id, upvotes)

        # INCIDENT_DELETED
        return self.remove(str(data.get("incidentId", "")))


# Process-wide pool used by the API routes
pool = IncidentPool()
