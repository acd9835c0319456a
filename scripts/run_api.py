from __future__ import annotations

import argparse

import uvicorn

from core.config import get_settings
from core.logging import get_logger

logger = get_logger("scripts.run_api")


def main() -> None:
    parser = argparse.ArgumentParser(description="Avvia l'API del negozio")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=5000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    try:
        settings = get_settings()
    except ValueError as e:
        logger.error("Config non valida: %s", e)
        return

    logger.info("Avvio API su %s:%s (env=%s)", args.host, args.port, settings.environment)
    uvicorn.run("api.app:create_app", factory=True, host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
