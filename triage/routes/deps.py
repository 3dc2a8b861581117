# triage/routes/deps.py
from __future__ import annotations

from functools import lru_cache

from triage.db.pool import IncidentPool, pool
from triage.services.backend_client import BackendClient


def get_pool() -> IncidentPool:
    return pool


@lru_cache(maxsize=1)
def get_backend() -> BackendClient:
    return BackendClient()
