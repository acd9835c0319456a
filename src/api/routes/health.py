from __future__ import annotations

import platform
import sys
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.deps import get_store
from core.config import get_settings
from core.persistence import DocumentStore

router = APIRouter(prefix="/api/health", tags=["health"])


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _uptime(request: Request) -> float:
    started = getattr(request.app.state, "started_at", None) or time.monotonic()
    return round(time.monotonic() - started, 3)


@router.get("", summary="Health check")
def health(request: Request, store: DocumentStore = Depends(get_store)):
    """
    Health endpoint minimale.
    """
    db_ok = store.ping()
    return {
        "status": "healthy",
        "timestamp": _now_iso(),
        "environment": get_settings().environment,
        "uptime": _uptime(request),
        "database": {
            "status": "healthy" if db_ok else "unhealthy",
            "connectionState": "connected" if db_ok else "unavailable",
        },
    }


@router.get("/details", summary="Health check dettagliato")
def health_details(request: Request, store: DocumentStore = Depends(get_store)):
    db_ok = store.ping()
    payload = {
        "status": "healthy" if db_ok else "degraded",
        "timestamp": _now_iso(),
        "services": {
            "documentStore": {
                "status": "healthy" if db_ok else "unhealthy",
                "details": {"dataDir": str(store.data_dir)},
            },
        },
        "system": {
            "uptime": _uptime(request),
            "pythonVersion": sys.version.split()[0],
            "platform": platform.system().lower(),
        },
    }
    return JSONResponse(payload, status_code=200 if db_ok else 503)
