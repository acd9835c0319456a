from __future__ import annotations

import threading
import traceback
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import requests

from core.config import Settings
from core.logging import get_logger
from core.models import ErrorReport

logger = get_logger("monitoring.error_monitor")


class MonitoringService:
    """
    Raccolta errori lato web client, inviati a batch all'endpoint di log dell'API.

    Ciclo di vita esplicito: start() all'avvio dell'app, stop() allo spegnimento
    (ferma il flusher e tenta un ultimo flush).

    - gli errori finiscono in una coda protetta da lock
    - flush periodico ogni `flush_interval` secondi, oppure subito al primo errore in coda vuota
    - un flush fallito rimette il batch in testa alla coda
    - il flag _is_flushing impedisce flush sovrapposti
    - in ambiente development il batch viene solo loggato e scartato
    """

    def __init__(
        self,
        endpoint: str,
        flush_interval: float = 10.0,
        flush_timeout: float = 3.0,
        enabled: bool = True,
        environment: str = "production",
        user_id_provider: Optional[Callable[[], Optional[str]]] = None,
    ) -> None:
        self.endpoint = endpoint
        self.flush_interval = flush_interval
        self.flush_timeout = flush_timeout
        self.enabled = enabled
        self.environment = environment
        self._user_id_provider = user_id_provider

        self._queue: List[ErrorReport] = []
        self._lock = threading.Lock()
        self._is_flushing = False
        self._wake = threading.Event()
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        user_id_provider: Optional[Callable[[], Optional[str]]] = None,
    ) -> "MonitoringService":
        endpoint = settings.monitoring_endpoint
        if not endpoint.startswith(("http://", "https://")):
            endpoint = f"{settings.api_url}/{endpoint.lstrip('/')}"
        return cls(
            endpoint=endpoint,
            flush_interval=settings.monitoring_flush_interval,
            flush_timeout=settings.monitoring_flush_timeout,
            enabled=settings.enable_monitoring,
            environment=settings.environment,
            user_id_provider=user_id_provider,
        )

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    # -- lifecycle -------------------------------------------------------------

    def start(self) -> None:
        if self.running or not self.enabled:
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._run, name="error-monitor-flusher", daemon=True)
        self._thread.start()
        logger.info("Monitoring service started (endpoint=%s)", self.endpoint)

    def stop(self) -> None:
        self._stopping.set()
        self._wake.set()
        if self._thread is not None:
            self._thread.join(timeout=self.flush_timeout + 1)
            self._thread = None
        self.flush()

    def _run(self) -> None:
        while not self._stopping.is_set():
            self._wake.wait(self.flush_interval)
            self._wake.clear()
            if self._stopping.is_set():
                break
            self.flush()

    # -- reporting -------------------------------------------------------------

    def _current_user_id(self) -> Optional[str]:
        if self._user_id_provider is None:
            return None
        try:
            return self._user_id_provider()
        except Exception:
            return None

    def report_error(self, error: BaseException, context: Optional[Dict[str, Any]] = None, url: str = "") -> None:
        if not self.enabled:
            return
        try:
            stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
            report: ErrorReport = {
                "message": str(error) or "Unknown error",
                "stack": stack,
                "context": {**(context or {}), "url": url},
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "url": url,
                "userId": self._current_user_id(),
            }
            with self._lock:
                self._queue.append(report)
                first = len(self._queue) == 1 and not self._is_flushing

            if self.environment == "development":
                logger.error("Error logged to monitoring service", extra={"client_error": report})

            if first:
                if self.running:
                    self._wake.set()
                else:
                    self.flush()
        except Exception as exc:  # pragma: no cover
            logger.error("Error in monitoring service: %s", exc)

    def log(self, level: str, message: str, data: Any = None) -> None:
        if self.environment == "development":
            logger.log({"info": 20, "warn": 30, "error": 40}.get(level, 20), "%s %s", message, data or "")
        if level == "error" and message:
            self.report_error(Exception(message), {"data": data})

    def flush(self) -> int:
        """Invia il batch in coda. Ritorna il numero di report consegnati."""
        with self._lock:
            if not self._queue or self._is_flushing:
                return 0
            self._is_flushing = True
            batch = self._queue
            self._queue = []

        try:
            if self.environment == "development":
                return 0
            try:
                resp = requests.post(self.endpoint, json={"errors": batch}, timeout=self.flush_timeout)
            except requests.RequestException as exc:
                self._requeue(batch)
                logger.error("Error reporting failed: %s", exc)
                return 0
            if not resp.ok:
                self._requeue(batch)
                logger.error("Error reporting failed: status=%s body=%s", resp.status_code, resp.text[:300])
                return 0
            return len(batch)
        finally:
            with self._lock:
                self._is_flushing = False

    def _requeue(self, batch: List[ErrorReport]) -> None:
        with self._lock:
            self._queue = batch + self._queue


def log_info(monitoring: MonitoringService, message: str, data: Any = None) -> None:
    monitoring.log("info", message, data)


def log_warning(monitoring: MonitoringService, message: str, data: Any = None) -> None:
    monitoring.log("warn", message, data)


def log_error(monitoring: MonitoringService, message: str, data: Any = None) -> None:
    monitoring.log("error", message, data)


__all__ = ["MonitoringService", "log_info", "log_warning", "log_error"]
