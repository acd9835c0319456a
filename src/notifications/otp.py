from __future__ import annotations

import secrets
import threading
import time
from typing import Dict, Optional, Tuple

OTP_LENGTH = 6


def generate_otp(length: int = OTP_LENGTH) -> str:
    """Codice numerico di `length` cifre (zeri iniziali inclusi)."""
    return f"{secrets.randbelow(10 ** length):0{length}d}"


class OtpStore:
    """
    Codici OTP in memoria con scadenza, chiave per destinatario (es. "otp:<email>").
    Un codice e' valido una sola volta: consume() lo rimuove se corretto.
    """

    def __init__(self, ttl_seconds: int = 600, clock=time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._codes: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def put(self, key: str, code: str) -> None:
        with self._lock:
            now = self._clock()
            # rimuove i codici scaduti
            for stale in [k for k, (_, exp) in self._codes.items() if now >= exp]:
                del self._codes[stale]
            self._codes[key] = (code, now + self.ttl_seconds)

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._codes.get(key)
            if entry is None:
                return None
            code, expires_at = entry
            if self._clock() >= expires_at:
                del self._codes[key]
                return None
            return code

    def consume(self, key: str, code: str) -> bool:
        stored = self.get(key)
        if stored is None or not secrets.compare_digest(stored, code):
            return False
        with self._lock:
            self._codes.pop(key, None)
        return True


__all__ = ["generate_otp", "OtpStore", "OTP_LENGTH"]
