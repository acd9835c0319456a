from __future__ import annotations

from enum import Enum
from typing import Any, Optional

# Status assegnato dal client quando la deadline scade (nessuna risposta dal server).
TIMEOUT_STATUS = 408
# Status di ripiego per errori di trasporto/decodifica senza risposta HTTP.
CLIENT_FAILURE_STATUS = 500


class FailureKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP = "http"
    DECODE = "decode"
    UNEXPECTED = "unexpected"


class ApiError(Exception):
    """
    Errore normalizzato di una richiesta verso l'API del negozio.

    Attributi:
      message: messaggio leggibile (dal campo `message` del server o generico)
      status: HTTP status della risposta, oppure TIMEOUT_STATUS / CLIENT_FAILURE_STATUS
      data: payload strutturato restituito dal server (se presente)
      kind: tipo di fallimento, usato dalla policy di retry

    Immutabile dopo la costruzione.
    """

    def __init__(
        self,
        message: str,
        status: int,
        data: Any = None,
        kind: FailureKind = FailureKind.HTTP,
    ) -> None:
        super().__init__(message)
        object.__setattr__(self, "message", message)
        object.__setattr__(self, "status", status)
        object.__setattr__(self, "data", data)
        object.__setattr__(self, "kind", kind)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("__") and name.endswith("__"):
            # __traceback__, __cause__, __notes__ restano gestiti dall'interprete
            super().__setattr__(name, value)
            return
        raise AttributeError(f"ApiError is immutable (cannot set {name!r})")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"ApiError is immutable (cannot delete {name!r})")

    def __reduce__(self):
        return (ApiError, (self.message, self.status, self.data, self.kind))

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, kind={self.kind.value}, message={self.message!r})"

    @property
    def is_timeout(self) -> bool:
        return self.kind is FailureKind.TIMEOUT

    @classmethod
    def from_exception(cls, exc: BaseException, kind: FailureKind) -> "ApiError":
        if isinstance(exc, cls):
            return exc
        status = TIMEOUT_STATUS if kind is FailureKind.TIMEOUT else CLIENT_FAILURE_STATUS
        message = str(exc) or "Unknown API error"
        if kind is FailureKind.TIMEOUT:
            message = f"Request timed out: {message}"
        return cls(message, status, None, kind)

    @classmethod
    def from_response(cls, status: int, data: Any) -> "ApiError":
        message = None
        if isinstance(data, dict):
            message = data.get("message")
        if not message or not isinstance(message, str):
            message = f"API request failed with status {status}"
        return cls(message, status, data, FailureKind.HTTP)


__all__ = ["ApiError", "FailureKind", "TIMEOUT_STATUS", "CLIENT_FAILURE_STATUS"]
