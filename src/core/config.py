import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


DEFAULT_API_URL = "http://localhost:5000"
DEV_JWT_SECRET = "your-secret-key"


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    v = value.strip().lower()
    if v in {"0", "false", "no"}:
        return False
    return True


@dataclass
class Settings:
    api_url: str
    client_timeout_ms: int
    client_max_retries: int
    client_retry_delay_ms: int

    data_dir: str
    log_level: str
    environment: str

    jwt_secret: str
    jwt_expires_days: int
    otp_expiration_seconds: int

    mail_mode: str
    resend_api_key: Optional[str]
    email_from: str

    enable_monitoring: bool
    monitoring_endpoint: str
    monitoring_flush_interval: float
    monitoring_flush_timeout: float

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        def _int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if not raw:
                return default
            try:
                return int(raw)
            except ValueError as e:
                raise ValueError(f"Variable {name} must be an integer (value: {raw!r})") from e

        def _float(name: str, default: float) -> float:
            raw = os.getenv(name)
            if not raw:
                return default
            try:
                return float(raw)
            except ValueError as e:
                raise ValueError(f"Variable {name} must be a number (value: {raw!r})") from e

        api_url = (os.getenv("SHOP_API_URL") or DEFAULT_API_URL).rstrip("/")

        client_timeout_ms = _int("SHOP_CLIENT_TIMEOUT_MS", 10000)
        client_max_retries = _int("SHOP_CLIENT_MAX_RETRIES", 2)
        client_retry_delay_ms = _int("SHOP_CLIENT_RETRY_DELAY_MS", 1000)
        if client_timeout_ms <= 0:
            raise ValueError("SHOP_CLIENT_TIMEOUT_MS must be positive")
        if client_max_retries < 0:
            raise ValueError("SHOP_CLIENT_MAX_RETRIES cannot be negative")
        client_retry_delay_ms = max(0, client_retry_delay_ms)

        data_dir = os.getenv("SHOP_DATA_DIR", "data")
        log_level = os.getenv("SHOP_LOG_LEVEL", "INFO").upper()
        environment = os.getenv("ENVIRONMENT", "development").lower()

        jwt_secret = os.getenv("JWT_SECRET") or DEV_JWT_SECRET
        jwt_expires_days = _int("JWT_EXPIRES_DAYS", 30)
        otp_expiration_seconds = _int("OTP_EXPIRATION_SECONDS", 10 * 60)

        mail_mode = os.getenv("MAIL_MODE", "log").lower()
        if mail_mode not in {"log", "resend"}:
            mail_mode = "log"
        resend_api_key = (os.getenv("RESEND_API_KEY") or "").strip() or None
        email_from = os.getenv("EMAIL_FROM", "Radeo Support <noreply@radeo.shop>")

        enable_monitoring = _parse_bool(os.getenv("ENABLE_MONITORING"), True)
        monitoring_endpoint = os.getenv("MONITORING_ENDPOINT", "/api/log/error")
        monitoring_flush_interval = _float("MONITORING_FLUSH_INTERVAL", 10.0)
        monitoring_flush_timeout = _float("MONITORING_FLUSH_TIMEOUT", 3.0)

        return cls(
            api_url=api_url,
            client_timeout_ms=client_timeout_ms,
            client_max_retries=client_max_retries,
            client_retry_delay_ms=client_retry_delay_ms,
            data_dir=data_dir,
            log_level=log_level,
            environment=environment,
            jwt_secret=jwt_secret,
            jwt_expires_days=jwt_expires_days,
            otp_expiration_seconds=otp_expiration_seconds,
            mail_mode=mail_mode,
            resend_api_key=resend_api_key,
            email_from=email_from,
            enable_monitoring=enable_monitoring,
            monitoring_endpoint=monitoring_endpoint,
            monitoring_flush_interval=monitoring_flush_interval,
            monitoring_flush_timeout=monitoring_flush_timeout,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def _reset_settings_cache_for_tests() -> None:
    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "_reset_settings_cache_for_tests", "DEFAULT_API_URL"]
