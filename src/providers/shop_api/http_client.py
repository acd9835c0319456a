from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from core.config import Settings, get_settings
from core.logging import get_logger
from monitoring.prometheus_exporter import CLIENT_RETRIES_TOTAL
from .exceptions import ApiError, FailureKind, TIMEOUT_STATUS, CLIENT_FAILURE_STATUS

log = get_logger(__name__)

# Default in millisecondi, come la configurazione SHOP_CLIENT_*
DEFAULT_TIMEOUT = 10000
MAX_RETRIES = 2
RETRY_DELAY = 1000

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class RetryPolicy:
    timeout: int = DEFAULT_TIMEOUT
    retries: int = MAX_RETRIES
    retry_delay_base: int = RETRY_DELAY

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            timeout=settings.client_timeout_ms,
            retries=settings.client_max_retries,
            retry_delay_base=settings.client_retry_delay_ms,
        )


def normalize_endpoint(endpoint: str) -> str:
    return "/" + endpoint.lstrip("/")


def should_retry(error: ApiError) -> bool:
    """
    Policy di retry:
      - errori di rete e timeout: sempre
      - decodifica / errori imprevisti: mai
      - HTTP 5xx e 429: si'
      - altri 4xx: terminali
    """
    if error.kind in (FailureKind.NETWORK, FailureKind.TIMEOUT):
        return True
    if error.kind is not FailureKind.HTTP:
        return False
    if 500 <= error.status < 600:
        return True
    return error.status == 429


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


def _encode_body(body: Any) -> Optional[bytes]:
    if body is None:
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


def _decode_response(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if JSON_CONTENT_TYPE in content_type:
        return response.json()
    return response.text


class ShopHttpClient:
    """
    Client HTTP asincrono verso l'API del negozio con timeout, retry e backoff lineare.

    Ogni chiamata a fetch_with_retry:
      - costruisce l'URL da base URL + endpoint normalizzato
      - esegue al massimo retries + 1 tentativi, in sequenza
      - applica a ogni tentativo una deadline di `timeout` ms (la chiamata in corso viene cancellata)
      - attende retry_delay_base * k ms prima del tentativo k (k >= 1)
      - ritorna il body decodificato oppure solleva ApiError

    Telemetria dell'ultima chiamata completata disponibile con get_stats().
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.api_url).rstrip("/")
        self._policy = policy or RetryPolicy.from_settings(settings)
        self._transport = transport
        self._last_stats: Dict[str, Any] = {
            "attempts": 0,
            "retries": 0,
            "latency_ms": 0.0,
            "last_status": None,
        }

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    def build_url(self, endpoint: str) -> str:
        return f"{self._base_url}{normalize_endpoint(endpoint)}"

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        headers: httpx.Headers,
        content: Optional[bytes],
        params: Optional[Mapping[str, Any]],
    ) -> Tuple[int, Any]:
        response = await client.request(method, url, headers=headers, content=content, params=params)
        try:
            data = _decode_response(response)
        except ValueError as e:
            if response.is_success:
                raise ApiError(
                    f"Invalid response body (status={response.status_code}): {e}",
                    CLIENT_FAILURE_STATUS,
                    {"raw": response.text[:300]},
                    FailureKind.DECODE,
                ) from e
            # corpo illeggibile su una risposta d'errore: vale lo status HTTP
            raise ApiError.from_response(response.status_code, None) from e
        if not response.is_success:
            raise ApiError.from_response(response.status_code, data)
        return response.status_code, data

    async def fetch_with_retry(
        self,
        endpoint: str,
        method: str = "GET",
        *,
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        timeout: Optional[int] = None,
        retries: Optional[int] = None,
    ) -> Any:
        url = self.build_url(endpoint)
        merged_headers = httpx.Headers({"Content-Type": JSON_CONTENT_TYPE})
        merged_headers.update(headers or {})
        content = _encode_body(body)
        timeout_ms = self._policy.timeout if timeout is None else timeout
        max_retries = max(0, self._policy.retries if retries is None else retries)

        start = time.perf_counter()
        last_status: Optional[int] = None
        last_error: Optional[ApiError] = None

        async with httpx.AsyncClient(transport=self._transport, timeout=None, follow_redirects=True) as client:
            for attempt in range(max_retries + 1):
                try:
                    status, data = await asyncio.wait_for(
                        self._attempt(client, method.upper(), url, merged_headers, content, params),
                        timeout=timeout_ms / 1000,
                    )
                except ApiError as e:
                    error = e
                except asyncio.TimeoutError as e:
                    error = ApiError(
                        f"Request to {url} timed out after {timeout_ms} ms",
                        TIMEOUT_STATUS,
                        None,
                        FailureKind.TIMEOUT,
                    )
                    error.__cause__ = e
                except httpx.TimeoutException as e:
                    error = ApiError.from_exception(e, FailureKind.TIMEOUT)
                    error.__cause__ = e
                except (httpx.TransportError, OSError) as e:
                    error = ApiError.from_exception(e, FailureKind.NETWORK)
                    error.__cause__ = e
                except Exception as e:
                    error = ApiError.from_exception(e, FailureKind.UNEXPECTED)
                    error.__cause__ = e
                else:
                    self._record(attempt + 1, start, status, success=True)
                    return data

                last_error = error
                if error.kind is FailureKind.HTTP:
                    last_status = error.status
                if attempt == max_retries or not should_retry(error):
                    break

                retry_no = attempt + 1
                delay_ms = self._policy.retry_delay_base * retry_no
                log.warning(
                    "API request to %s failed, retrying (%s/%s)...",
                    url,
                    retry_no,
                    max_retries,
                    extra={
                        "retry": {
                            "attempt": retry_no,
                            "wait_ms": delay_ms,
                            "reason": error.kind.value,
                            "status": error.status,
                            "error": error.message,
                        }
                    },
                )
                CLIENT_RETRIES_TOTAL.labels(reason=error.kind.value).inc()
                await _sleep(delay_ms / 1000)

        self._record(attempt + 1, start, last_status, success=False)
        raise last_error  # type: ignore[misc]

    def _record(self, attempts: int, start: float, last_status: Optional[int], success: bool) -> None:
        self._last_stats = {
            "attempts": attempts,
            "retries": attempts - 1,
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            "last_status": last_status,
            "success": success,
        }

    def get_stats(self) -> Dict[str, Any]:
        """
        Telemetria dell'ultima chiamata completata:
          attempts, retries (attempts - 1), latency_ms, last_status (ultimo status HTTP d'errore o None)
        """
        return dict(self._last_stats)


def get_http_client(**kwargs: Any) -> ShopHttpClient:
    """
    Restituisce sempre una nuova istanza, cosi' i test che
    modificano le variabili d'ambiente hanno effetto immediato.
    """
    return ShopHttpClient(**kwargs)


async def fetch_with_retry(endpoint: str, method: str = "GET", **kwargs: Any) -> Any:
    return await get_http_client().fetch_with_retry(endpoint, method, **kwargs)


__all__ = [
    "DEFAULT_TIMEOUT",
    "MAX_RETRIES",
    "RETRY_DELAY",
    "RetryPolicy",
    "ShopHttpClient",
    "fetch_with_retry",
    "get_http_client",
    "normalize_endpoint",
    "should_retry",
]
