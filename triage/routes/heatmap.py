# triage/routes/heatmap.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from triage import config
from triage.db.pool import IncidentPool
from triage.routes.deps import get_pool
from triage.services.heatmap import heatmap_points, zone_intensity

router = APIRouter(tags=["heatmap"])


@router.get("/heatmap")
def heatmap(
    zones: bool = Query(False, description="Aggregate into H3 cells instead of raw points"),
    resolution: int = Query(config.HEATMAP_RESOLUTION, ge=1, le=15, description="H3 resolution (1-15)"),
    incidents: IncidentPool = Depends(get_pool),
):
    snapshot = incidents.snapshot()
    if zones:
        return {"resolution": resolution, "zones": zone_intensity(snapshot, resolution)}
    return {"points": heatmap_points(snapshot)}
