from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from core.config import get_settings

JWT_ALGORITHM = "HS256"


class TokenError(Exception):
    """Token assente, scaduto o con firma non valida."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    role: str
    is_admin: bool


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # hash malformato in archivio
        return False


def create_access_token(user_id: str, role: str, expires_days: Optional[int] = None) -> str:
    settings = get_settings()
    days = settings.jwt_expires_days if expires_days is None else expires_days
    payload: Dict[str, Any] = {
        "id": user_id,
        "role": role,
        "isAdmin": role == "admin",
        "exp": datetime.now(timezone.utc) + timedelta(days=days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        raise TokenError(str(e)) from e
    user_id = payload.get("id")
    if not isinstance(user_id, str) or not user_id:
        raise TokenError("token without user id")
    role = str(payload.get("role") or "user")
    return TokenClaims(user_id=user_id, role=role, is_admin=bool(payload.get("isAdmin")) or role == "admin")


__all__ = [
    "TokenClaims",
    "TokenError",
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_access_token",
]
