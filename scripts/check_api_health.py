from __future__ import annotations

import argparse
import asyncio
import sys

from core.config import get_settings
from core.logging import get_logger
from providers.shop_api.client import ShopApi
from providers.shop_api.exceptions import ApiError
from providers.shop_api.health import check_api_health
from providers.shop_api.http_client import ShopHttpClient

log = get_logger("scripts.check_api_health")


def main() -> int:
    parser = argparse.ArgumentParser(description="Verifica che l'API del negozio risponda")
    parser.add_argument("--url", default=None, help="Base URL dell'API (default: SHOP_API_URL)")
    parser.add_argument("--details", action="store_true", help="Chiama /api/health con retry e stampa la risposta")
    args = parser.parse_args()

    url = args.url or get_settings().api_url
    if not check_api_health(url):
        log.error("API non raggiungibile: %s", url)
        return 1

    if args.details:
        api = ShopApi(http=ShopHttpClient(base_url=url))
        try:
            payload = asyncio.run(api.check_health())
        except ApiError as err:
            log.error("Health check fallito: %s", err.message, extra={"fetch_stats": api.http.get_stats()})
            return 1
        log.info("API online: %s", payload, extra={"fetch_stats": api.http.get_stats()})
    else:
        log.info("API online: %s", url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
