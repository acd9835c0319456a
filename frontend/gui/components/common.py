import asyncio
import atexit
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Dict, Iterable, Optional, TypeVar

import pandas as pd
import streamlit as st
from dotenv import find_dotenv, load_dotenv

ROOT = Path(__file__).resolve().parents[3]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from core.config import get_settings  # noqa: E402
from monitoring.error_monitor import MonitoringService, log_warning  # noqa: E402
from providers.shop_api.client import ShopApi  # noqa: E402
from providers.shop_api.exceptions import ApiError, TIMEOUT_STATUS  # noqa: E402

_env = find_dotenv(usecwd=True)
if _env:
    load_dotenv(_env, override=False)

T = TypeVar("T")

SESSION_KEY = "session"


@dataclass
class Session:
    user_id: str
    name: str
    email: Optional[str]
    is_admin: bool
    token: str


def session_from_auth(payload: Dict[str, Any]) -> Session:
    """Costruisce la sessione dalla risposta di login/register."""
    return Session(
        user_id=str(payload.get("_id") or payload.get("id") or ""),
        name=str(payload.get("name") or payload.get("email") or ""),
        email=payload.get("email"),
        is_admin=payload.get("role") == "admin",
        token=str(payload.get("token") or ""),
    )


def get_session() -> Optional[Session]:
    return st.session_state.get(SESSION_KEY)


def set_session(session: Session) -> None:
    st.session_state[SESSION_KEY] = session


def clear_session() -> None:
    st.session_state.pop(SESSION_KEY, None)


def get_api() -> ShopApi:
    session = get_session()
    return ShopApi(token=session.token if session else None)


def run(coro: Awaitable[T]) -> T:
    return asyncio.run(coro)


@st.cache_resource
def init_monitoring() -> MonitoringService:
    # avviato una volta per processo streamlit, fermato all'uscita; le pagine passano il riferimento a call_api
    service = MonitoringService.from_settings(
        get_settings(),
        user_id_provider=lambda: (get_session().user_id if get_session() else None),
    )
    service.start()
    atexit.register(service.stop)
    return service


def describe_error(err: ApiError) -> str:
    if err.status == TIMEOUT_STATUS:
        return "The shop is not responding right now. Please try again in a moment."
    if err.status == 401:
        return f"Authentication required: {err.message}"
    if err.status == 403:
        return "You are not allowed to perform this action."
    if err.status == 404:
        return err.message
    if err.status == 429:
        return "Too many requests. Please slow down and retry."
    if err.status >= 500:
        return "Server error. Our team has been notified."
    return err.message


def call_api(coro: Awaitable[T], action: str, monitoring: Optional[MonitoringService] = None) -> Optional[T]:
    """Esegue la chiamata; su ApiError mostra il messaggio, segnala 5xx e timeout, logga i 4xx come warning."""
    try:
        return run(coro)
    except ApiError as err:
        st.error(describe_error(err))
        if monitoring is not None:
            if err.status >= 500 or err.status == TIMEOUT_STATUS:
                monitoring.report_error(err, {"action": action, "status": err.status})
            else:
                log_warning(monitoring, f"{action} rejected", {"status": err.status, "message": err.message})
        return None


def format_price(value: Any) -> str:
    try:
        return f"${float(value):,.2f}"
    except (TypeError, ValueError):
        return "-"


def to_dataframe(items: Iterable[Dict[str, Any]], columns: Optional[Iterable[str]] = None) -> pd.DataFrame:
    df = pd.json_normalize(list(items))
    if columns is not None and not df.empty:
        cols = [c for c in columns if c in df.columns]
        df = df[cols]
    return df


def cart_dataframe(cart: Dict[str, Any]) -> pd.DataFrame:
    rows = []
    for line in cart.get("items", []):
        product = line.get("product") or {}
        rows.append(
            {
                "productId": line.get("productId"),
                "name": product.get("name", "(no longer available)"),
                "price": format_price(product.get("price")),
                "quantity": line.get("quantity", 0),
                "subtotal": format_price(line.get("subtotal", 0)),
            }
        )
    return pd.DataFrame(rows, columns=["productId", "name", "price", "quantity", "subtotal"])
