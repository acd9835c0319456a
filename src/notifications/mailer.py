from __future__ import annotations

from typing import Any, Dict, Optional

import resend

from core.config import get_settings
from core.logging import get_logger

logger = get_logger("notifications.mailer")

OTP_SUBJECT = "Your OTP Verification Code"


def _otp_html(otp: str, minutes: int) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        "<h2>OTP Verification Code</h2>"
        "<p>Your one-time password is:</p>"
        f'<h1 style="font-size: 36px; letter-spacing: 5px; text-align: center;">{otp}</h1>'
        f"<p>This code will expire in {minutes} minutes.</p>"
        "<p>If you did not request this code, please ignore this email.</p>"
        "</div>"
    )


def _send_log(payload: Dict[str, Any]) -> None:
    logger.info(
        "mail_log",
        extra={"mail": {"to": payload["to"], "subject": payload["subject"], "text": payload["text"]}},
    )


def _send_resend(payload: Dict[str, Any], api_key: str) -> None:
    resend.api_key = api_key
    response = resend.Emails.send(payload)
    logger.info("mail_resend", extra={"mail": {"to": payload["to"], "id": (response or {}).get("id")}})


def send_email(to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
    """
    Invio best-effort: ogni errore viene loggato e non propagato.
    Ritorna True se il messaggio e' stato consegnato al canale configurato.
    """
    try:
        settings = get_settings()
        payload: Dict[str, Any] = {
            "from": settings.email_from,
            "to": [to],
            "subject": subject,
            "text": text,
            "html": html or text,
        }
        mode = settings.mail_mode
        if mode == "resend":
            if not settings.resend_api_key:
                logger.error("RESEND_API_KEY missing, falling back to log delivery.")
                _send_log(payload)
            else:
                _send_resend(payload, settings.resend_api_key)
        else:
            _send_log(payload)
        return True
    except Exception as exc:
        logger.error("Error sending email to %s: %s", to, exc)
        return False


def send_otp_email(email: str, otp: str) -> bool:
    try:
        minutes = max(1, get_settings().otp_expiration_seconds // 60)
    except ValueError as exc:
        logger.error("Invalid configuration, OTP email not sent: %s", exc)
        return False
    text = f"Your OTP verification code is: {otp}. It will expire in {minutes} minutes."
    return send_email(email, OTP_SUBJECT, text, _otp_html(otp, minutes))


__all__ = ["send_email", "send_otp_email"]
