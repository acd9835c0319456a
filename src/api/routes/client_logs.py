from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, HTTPException

from core.logging import get_logger
from monitoring.prometheus_exporter import CLIENT_ERRORS_RECEIVED_TOTAL

router = APIRouter(prefix="/api/log", tags=["monitoring"])
logger = get_logger("api.routes.client_logs")


@router.post("/error", summary="Raccolta errori del web client")
def log_client_errors(payload: Any = Body(...)):
    errors = payload.get("errors") if isinstance(payload, dict) else None
    if not isinstance(errors, list):
        raise HTTPException(status_code=400, detail="Invalid request body")
    for error in errors:
        logger.error("Client error", extra={"client_error": error})
        CLIENT_ERRORS_RECEIVED_TOTAL.inc()
    return {"success": True, "received": len(errors)}
