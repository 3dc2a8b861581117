# triage/config.py
from __future__ import annotations

import os
import logging

# --- Load .env early so os.getenv works everywhere ---
try:
    from dotenv import load_dotenv  # type: ignore
    load_dotenv()
except Exception:
    pass


def _prefix(value: str) -> str:
    value = value.strip()
    if not value:
        return ""
    if not value.startswith("/"):
        value = "/" + value
    # avoid trailing slash so paths look like /api/queue (not //queue)
    return value.rstrip("/")


# Optional global API prefix (e.g., "/api")
API_PREFIX = _prefix(os.getenv("API_PREFIX", ""))

# Comma separated, e.g. "https://app.example.com,https://staging.example.com"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

# Remote incident backend (REST). Stores incidents, runs AI severity, pushes events.
BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:5000/api").rstrip("/")
BACKEND_TIMEOUT = float(os.getenv("BACKEND_TIMEOUT", "12"))

SYNC_ON_STARTUP = os.getenv("SYNC_ON_STARTUP", "false").lower() == "true"

QUEUE_DEFAULT_LIMIT = int(os.getenv("QUEUE_DEFAULT_LIMIT", "20"))
HEATMAP_RESOLUTION = int(os.getenv("HEATMAP_RESOLUTION", "9"))

LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
PORT = int(os.getenv("PORT", "8000"))
