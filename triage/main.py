# triage/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import RedirectResponse

from triage import config
from triage.db.pool import IncidentPool
from triage.routes.deps import get_backend, get_pool

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
log = logging.getLogger("uvicorn.error")

_API_PREFIX = config.API_PREFIX


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.SYNC_ON_STARTUP:
        from triage.services.backend_client import BackendError
        try:
            count = get_pool().replace(get_backend().list_incidents())
            log.info("Initial pool sync: %d incidents from %s", count, config.BACKEND_URL)
        except BackendError as e:
            # start empty; /pool/sync or push events fill it later
            log.warning("Initial pool sync failed: %s", e)
    yield


app = FastAPI(
    title="Incident Triage API",
    version="1.0.0",
    description="Priority queue and duplicate checks over the live incident pool.",
    lifespan=lifespan,
)

# ---------------- CORS ----------------
# Prefer explicit origins via CORS_ORIGINS="https://app.example.com,https://staging.example.com"
# For local dev we allow any localhost/127.0.0.1 on any port.
cors_kwargs = dict(allow_methods=["*"], allow_headers=["*"])

if config.CORS_ORIGINS:
    cors_kwargs.update(allow_origins=config.CORS_ORIGINS, allow_credentials=True)
else:
    cors_kwargs.update(
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
    )

app.add_middleware(CORSMiddleware, **cors_kwargs)
log.info("CORS configured: %s", cors_kwargs)

# ---------------- Routers ----------------
# Each router has its own prefix (/queue, /incidents, ...); _API_PREFIX goes in front.
from triage.routes.queue import router as queue_router
from triage.routes.incident import router as incident_router

app.include_router(queue_router, prefix=_API_PREFIX)
app.include_router(incident_router, prefix=_API_PREFIX)

try:
    from triage.routes.events import router as events_router
    app.include_router(events_router, prefix=_API_PREFIX)
except Exception as e:
    log.exception("Failed to include events router: %s", e)

try:
    from triage.routes.heatmap import router as heatmap_router
    app.include_router(heatmap_router, prefix=_API_PREFIX)
except Exception as e:
    log.exception("Failed to include heatmap router: %s", e)


# ---------------- Meta/utility ----------------
@app.get("/", include_in_schema=False)
def root() -> RedirectResponse:
    # Visiting the root opens Swagger UI
    return RedirectResponse(url="/docs")


@app.get(f"{_API_PREFIX or ''}/health", tags=["meta"])
def health(incidents: IncidentPool = Depends(get_pool)):
    return {"status": "ok", "prefix": _API_PREFIX or "", "pool_size": len(incidents)}


def run() -> None:
    import uvicorn
    uvicorn.run("triage.main:app", host="0.0.0.0", port=config.PORT)


# ---------------- Local dev entrypoint ----------------
if __name__ == "__main__":
    run()
