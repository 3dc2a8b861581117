# triage/routes/events.py
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError

from triage.db.pool import IncidentPool, UnknownEventError
from triage.routes.deps import get_backend, get_pool
from triage.services.backend_client import BackendClient, BackendError

log = logging.getLogger("uvicorn.error")

router = APIRouter(tags=["events"])


class PushEvent(BaseModel):
    type: str = Field(..., description="new_incident | upvote_update | incident_updated | incident_deleted")
    data: Dict[str, Any] = Field(default_factory=dict)


@router.post("/events")
def ingest_event(event: PushEvent, incidents: IncidentPool = Depends(get_pool)):
    """Apply one real-time event from the backend to the local pool."""
    try:
        incident = incidents.apply_event(event.type, event.data)
    except UnknownEventError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (ValidationError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"applied": event.type, "incident": incident, "pool_size": len(incidents)}


@router.post("/pool/sync")
def sync_pool(
    incidents: IncidentPool = Depends(get_pool),
    backend: BackendClient = Depends(get_backend),
):
    """Reload every incident from the backend."""
    try:
        fresh = backend.list_incidents()
    except BackendError as e:
        raise HTTPException(status_code=502, detail=str(e))
    count = incidents.replace(fresh)
    log.info("Pool synced from backend: %d incidents", count)
    return {"status": "ok", "pool_size": count}
