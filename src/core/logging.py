from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Campi strutturati ammessi nel record JSON (passati con extra={...}).
#   retry        tentativo del client HTTP (attempt, wait_ms, reason, status)
#   fetch_stats  telemetria dell'ultima chiamata del client
#   request      access log dell'API (method, path, status, duration_ms)
#   client_error errore inviato dal web client su /api/log/error
#   mail         esito invio email
EXTRA_WHITELIST = ("retry", "fetch_stats", "request", "client_error", "mail")

DEFAULT_LEVEL = "INFO"


def _level_from_env() -> int:
    name = (os.getenv("SHOP_LOG_LEVEL") or DEFAULT_LEVEL).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


class JsonFormatter(logging.Formatter):
    """Una riga JSON per record: ts, level, logger, msg piu' gli extra ammessi."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in EXTRA_WHITELIST:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())
        logger.propagate = False
    return logger
