from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_current_user, get_otp_store, get_store, public_user
from api.schemas import (
    EmailRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyOtpRequest,
)
from core.logging import get_logger
from core.models import UserRecord
from core.persistence import USERS, DocumentStore, DuplicateKeyError
from core.security import create_access_token, hash_password, verify_password
from notifications.mailer import send_email, send_otp_email
from notifications.otp import OtpStore, generate_otp

router = APIRouter(prefix="/api/users", tags=["users"])
logger = get_logger("api.routes.users")

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a reset code has been sent"


def _auth_payload(user: UserRecord) -> Dict[str, Any]:
    out = public_user(user)
    out["token"] = create_access_token(user["_id"], user.get("role", "user"))
    return out


@router.get("/health", summary="Stato API (usato dal web client)")
def users_health():
    return {"message": "Backend API Status: Online"}


@router.post("/register", status_code=201)
def register(body: RegisterRequest, store: DocumentStore = Depends(get_store)):
    lookups = [{k: v} for k, v in (("email", body.email), ("phoneNumber", body.phoneNumber)) if v]
    if store.find_one(USERS, {"$or": lookups}):
        raise HTTPException(status_code=400, detail="User already exists")
    try:
        user = store.create(
            USERS,
            {
                "name": body.name,
                "email": body.email,
                "password": hash_password(body.password),
                "phoneNumber": body.phoneNumber,
                "isPhoneVerified": False,
                "isVerified": False,
                "role": "user",
            },
        )
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="User already exists")
    logger.info("User registered id=%s", user["_id"])
    return _auth_payload(user)


@router.post("/login")
def login(body: LoginRequest, store: DocumentStore = Depends(get_store)):
    user = store.find_one(USERS, {"email": body.email})
    if not user or not verify_password(body.password, user.get("password")):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _auth_payload(user)


@router.post("/forgot-password")
def forgot_password(
    body: EmailRequest,
    store: DocumentStore = Depends(get_store),
    otp_store: OtpStore = Depends(get_otp_store),
):
    if not body.email:
        raise HTTPException(status_code=400, detail="Email is required")
    email = body.email.strip().lower()
    # stessa risposta che l'utente esista o no
    if store.find_one(USERS, {"email": email}):
        code = generate_otp()
        otp_store.put(f"reset:{email}", code)
        send_email(
            email,
            "Password reset code",
            f"Your password reset code is: {code}. If you did not request it, ignore this email.",
        )
    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password")
def reset_password(
    body: ResetPasswordRequest,
    store: DocumentStore = Depends(get_store),
    otp_store: OtpStore = Depends(get_otp_store),
):
    email = body.email.strip().lower()
    user = store.find_one(USERS, {"email": email})
    if not user or not otp_store.consume(f"reset:{email}", body.otp):
        raise HTTPException(status_code=400, detail="Invalid or expired reset code")
    store.update(USERS, user["_id"], {"password": hash_password(body.password)})
    return {"message": "Password updated"}


@router.post("/request-otp")
def request_otp(body: EmailRequest, otp_store: OtpStore = Depends(get_otp_store)):
    if not body.email:
        raise HTTPException(status_code=400, detail="Email is required")
    email = body.email.strip().lower()
    code = generate_otp()
    otp_store.put(f"otp:{email}", code)
    send_otp_email(email, code)
    return {"message": "OTP sent successfully"}


@router.post("/verify-otp")
def verify_otp(
    body: VerifyOtpRequest,
    store: DocumentStore = Depends(get_store),
    otp_store: OtpStore = Depends(get_otp_store),
):
    if not body.email or not body.otp:
        raise HTTPException(status_code=400, detail="Email and OTP are required")
    email = body.email.strip().lower()
    if not otp_store.consume(f"otp:{email}", body.otp):
        raise HTTPException(status_code=400, detail="Invalid OTP")

    user = store.find_one(USERS, {"email": email})
    if user is None:
        user = store.create(
            USERS,
            {
                "name": email.split("@", 1)[0],
                "email": email,
                "password": None,
                "phoneNumber": None,
                "isPhoneVerified": False,
                "isVerified": True,
                "role": "user",
            },
        )
    else:
        user = store.update(USERS, user["_id"], {"isVerified": True})
    return {
        "message": "OTP verified successfully",
        "user": {"id": user["_id"], "email": user.get("email"), "isVerified": True},
        "token": create_access_token(user["_id"], user.get("role", "user")),
    }


@router.get("/me")
def get_profile(user: Dict[str, Any] = Depends(get_current_user)):
    return public_user(user)


@router.put("/me")
def update_profile(
    body: ProfileUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    changes = body.changes()
    if "password" in changes:
        changes["password"] = hash_password(changes["password"])
    if changes.get("email") and changes["email"] != user.get("email"):
        # una nuova email va riverificata
        changes["isVerified"] = False
    if "phoneNumber" in changes and changes["phoneNumber"] != user.get("phoneNumber"):
        changes["isPhoneVerified"] = False
    try:
        updated = store.update(USERS, user["_id"], changes)
    except DuplicateKeyError as e:
        raise HTTPException(status_code=400, detail=f"{e.field} already in use")
    return public_user(updated)
