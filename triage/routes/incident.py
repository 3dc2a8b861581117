# triage/routes/incident.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from triage.db.pool import IncidentPool
from triage.models.incident import Incident, IncidentDraft, Status
from triage.routes.deps import get_backend, get_pool
from triage.services.backend_client import BackendClient, BackendError
from triage.services.clock import utcnow
from triage.services.duplicates import LOOKBACK_WINDOW, MATCH_RADIUS_M, find_duplicates
from triage.services.stats import incident_stats

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/incidents", tags=["incident"])


class StatusUpdate(BaseModel):
    status: Status
    notes: str = ""


def _backend_failure(e: BackendError) -> HTTPException:
    return HTTPException(status_code=502, detail=str(e))


@router.post("/duplicates")
def check_duplicates(draft: IncidentDraft, incidents: IncidentPool = Depends(get_pool)):
    """
    Run the duplicate check for a draft report against the local pool.
    An empty list means: no duplicate, go ahead and create.
    """
    matches = find_duplicates(draft, incidents.snapshot(), utcnow())
    return {
        "duplicates": matches,
        "count": len(matches),
        "radius_m": MATCH_RADIUS_M,
        "window_minutes": int(LOOKBACK_WINDOW.total_seconds() // 60),
        "location_checked": draft.point is not None,
    }


@router.post("/report", status_code=201)
def report_incident(
    draft: IncidentDraft,
    force: bool = Query(False, description="Create even if duplicates were found"),
    incidents: IncidentPool = Depends(get_pool),
    backend: BackendClient = Depends(get_backend),
):
    """
    Submit a report. Unless `force` is set, possible duplicates are returned
    with HTTP 409 so the reporter can link to one of them instead.
    """
    if not force:
        matches = find_duplicates(draft, incidents.snapshot(), utcnow())
        if matches:
            return JSONResponse(
                status_code=409,
                content=jsonable_encoder(
                    {"detail": "Possible duplicate incidents found", "duplicates": matches}
                ),
            )

    try:
        created = backend.report_incident(draft.model_dump(exclude_none=True))
    except BackendError as e:
        raise _backend_failure(e)
    incidents.upsert(created)
    log.info("Reported incident %s (%s)", created.id, created.type)
    return created


@router.get("/stats")
def get_incident_stats(incidents: IncidentPool = Depends(get_pool)):
    stats = incident_stats(incidents.snapshot(), utcnow())
    stats["duplicates_prevented"] = incidents.duplicates_prevented
    return stats


@router.get("/{incident_id}", response_model=Incident)
def get_incident(incident_id: str, incidents: IncidentPool = Depends(get_pool)):
    incident = incidents.get(incident_id)
    if incident is None:
        raise HTTPException(status_code=404, detail="Incident not found")
    return incident


@router.post("/{incident_id}/link")
def link_to_incident(
    incident_id: str,
    incidents: IncidentPool = Depends(get_pool),
    backend: BackendClient = Depends(get_backend),
):
    """Corroborate an existing incident (upvote) instead of filing a duplicate."""
    if incidents.get(incident_id) is None:
        raise HTTPException(status_code=404, detail="Incident not found")
    try:
        upvotes = backend.upvote_incident(incident_id)
    except BackendError as e:
        raise _backend_failure(e)

    incident = incidents.set_upvotes(incident_id, upvotes)
    prevented = incidents.record_prevented_duplicate()
    return {
        "incident": incident,
        "upvotes": incident.upvotes if incident else upvotes,
        "duplicates_prevented": prevented,
    }


@router.patch("/{incident_id}/status", response_model=Incident)
def update_incident_status(
    incident_id: str,
    body: StatusUpdate,
    incidents: IncidentPool = Depends(get_pool),
    backend: BackendClient = Depends(get_backend),
):
    try:
        updated = backend.update_status(incident_id, body.status.value, body.notes)
    except BackendError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="Incident not found")
        raise _backend_failure(e)
    return incidents.upsert(updated)


@router.patch("/{incident_id}/verify", response_model=Incident)
def verify_incident(
    incident_id: str,
    incidents: IncidentPool = Depends(get_pool),
    backend: BackendClient = Depends(get_backend),
):
    try:
        updated = backend.verify_incident(incident_id)
    except BackendError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="Incident not found")
        raise _backend_failure(e)
    return incidents.upsert(updated)
