from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request

from core.persistence import USERS, DocumentStore
from core.security import TokenError, decode_access_token
from notifications.otp import OtpStore


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_otp_store(request: Request) -> OtpStore:
    return request.app.state.otp_store


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user.items() if k != "password"}


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization") or ""
    if not header.startswith("Bearer"):
        return None
    parts = header.split(" ", 1)
    return parts[1].strip() if len(parts) == 2 else ""


def get_current_user(request: Request, store: DocumentStore = Depends(get_store)) -> Dict[str, Any]:
    token = _bearer_token(request)
    if token is None:
        raise HTTPException(status_code=401, detail="Not authorized, no token")
    try:
        claims = decode_access_token(token)
    except TokenError:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")
    user = store.find_by_id(USERS, claims.user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")
    return user


def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Not authorized as an admin")
    return user
