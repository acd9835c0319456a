from __future__ import annotations

from typing import Optional

import requests

from core.config import get_settings
from core.logging import get_logger

logger = get_logger(__name__)

HEALTH_TIMEOUT_SECONDS = 5


def check_api_health(api_url: Optional[str] = None) -> bool:
    """
    Verifica raggiungibilita' dell'API (GET /api/health, una sola richiesta, nessun retry).
    Ritorna False su qualunque errore.
    """
    base = (api_url or get_settings().api_url).rstrip("/")
    try:
        resp = requests.get(
            f"{base}/api/health",
            headers={"Accept": "application/json"},
            timeout=HEALTH_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        logger.error("API health check failed: %s", exc)
        return False
    return resp.ok
