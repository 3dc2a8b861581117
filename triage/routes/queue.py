# triage/routes/queue.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from triage import config
from triage.db.pool import IncidentPool
from triage.models.incident import ScoredIncident
from triage.routes.deps import get_pool
from triage.services.clock import utcnow
from triage.services.geo import resolve_point
from triage.services.priority import queue_stats, rank_incidents

router = APIRouter(prefix="/queue", tags=["queue"])


@router.get("", response_model=List[ScoredIncident])
def priority_queue(
    limit: int = Query(config.QUEUE_DEFAULT_LIMIT, ge=1, le=500, description="Maximum entries"),
    open_only: bool = Query(False, description="Hide resolved/closed incidents"),
    lat: Optional[float] = Query(None, description="Responder latitude (adds distance_m)"),
    lng: Optional[float] = Query(None, description="Responder longitude (adds distance_m)"),
    incidents: IncidentPool = Depends(get_pool),
):
    """
    Responder work queue: every known incident scored and sorted, highest
    priority first. Recomputed on each call.
    """
    origin = None
    if lat is not None or lng is not None:
        origin = resolve_point((lat, lng))
        if origin is None:
            raise HTTPException(status_code=422, detail="lat and lng must both be valid coordinates")
    return rank_incidents(incidents.snapshot(), utcnow(), limit=limit, open_only=open_only, origin=origin)


@router.get("/stats")
def priority_queue_stats(incidents: IncidentPool = Depends(get_pool)):
    return queue_stats(incidents.snapshot())
