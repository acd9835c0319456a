from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    generate_latest,
)

# Registry dedicato (non il default globale di prometheus_client).
_REGISTRY = CollectorRegistry()

CLIENT_RETRIES_TOTAL = Counter(
    "shop_client_retries_total",
    "Retry eseguiti dal client HTTP verso l'API",
    labelnames=("reason",),
    registry=_REGISTRY,
)
CLIENT_ERRORS_RECEIVED_TOTAL = Counter(
    "shop_client_errors_received_total",
    "Errori lato client ricevuti su /api/log/error",
    registry=_REGISTRY,
)
API_ERRORS_TOTAL = Counter(
    "shop_api_errors_total",
    "Risposte d'errore restituite dall'API",
    labelnames=("status",),
    registry=_REGISTRY,
)


def generate_prometheus_text() -> bytes:
    return generate_latest(_REGISTRY)


__all__ = [
    "CLIENT_RETRIES_TOTAL",
    "CLIENT_ERRORS_RECEIVED_TOTAL",
    "API_ERRORS_TOTAL",
    "generate_prometheus_text",
    "_REGISTRY",
]
