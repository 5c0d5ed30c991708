import logging
import time

import requests

from printshop.core.config import (
    SENDGRID_API_KEY, SENDGRID_FROM_EMAIL, SENDGRID_FROM_NAME,
    EMAIL_MAX_ATTEMPTS, EMAIL_RETRY_DELAY_SECONDS, EMAIL_TIMEOUT_SECONDS,
    FRONTEND_URL, OTP_EXPIRE_MINUTES,
)

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"

TRANSIENT_STATUS_CODES = (429, 500, 502, 503, 504)


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to SendGrid."""


def _footer():
    return (
        '<hr style="margin:20px 0;border:none;border-top:1px solid #eee">'
        '<p style="font-size:12px;color:#999">This is an automated message from Hugli printing service.</p>'
    )


def send_email(to_email: str, subject: str, text: str, html: str):
    """
    Send one email through the SendGrid v3 API.

    Connection errors, timeouts and 429/5xx answers are retried up to
    EMAIL_MAX_ATTEMPTS times with a fixed delay. Anything else fails at once.
    """
    if not SENDGRID_API_KEY or not SENDGRID_FROM_EMAIL:
        raise EmailDeliveryError("SendGrid env missing")

    payload = {
        "personalizations": [
            {
                "to": [{"email": to_email}],
                "subject": subject
            }
        ],
        "from": {"email": SENDGRID_FROM_EMAIL, "name": SENDGRID_FROM_NAME},
        "content": [
            {"type": "text/plain", "value": text},
            {"type": "text/html", "value": html},
        ]
    }

    headers = {
        "Authorization": f"Bearer {SENDGRID_API_KEY}",
        "Content-Type": "application/json"
    }

    last_error = None
    for attempt in range(1, EMAIL_MAX_ATTEMPTS + 1):
        try:
            r = requests.post(SENDGRID_URL, headers=headers, json=payload, timeout=EMAIL_TIMEOUT_SECONDS)
        except (requests.ConnectionError, requests.Timeout) as e:
            last_error = f"{type(e).__name__}: {e}"
        else:
            if r.status_code in (200, 202):
                logger.info("Email '%s' sent to %s", subject, to_email)
                return
            if r.status_code not in TRANSIENT_STATUS_CODES:
                raise EmailDeliveryError(f"SendGrid failed ({r.status_code}): {r.text}")
            last_error = f"SendGrid returned {r.status_code}"

        logger.warning("Email attempt %d/%d to %s failed: %s", attempt, EMAIL_MAX_ATTEMPTS, to_email, last_error)
        if attempt < EMAIL_MAX_ATTEMPTS:
            time.sleep(EMAIL_RETRY_DELAY_SECONDS)

    raise EmailDeliveryError(f"SendGrid unreachable after {EMAIL_MAX_ATTEMPTS} attempts: {last_error}")


def send_otp_email(to_email: str, otp: str, purpose: str):
    titles = {
        "login": "Login Verification",
        "email_verification": "Verify Your Email",
        "password_reset": "Password Reset",
    }
    title = titles.get(purpose, "Verification Code")

    text = f"Your Hugli verification code is: {otp}. This code will expire in {OTP_EXPIRE_MINUTES} minutes."
    html = f"""
    <div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto">
      <h2 style="color:#333">{title}</h2>
      <p>Your verification code is:</p>
      <div style="font-size:28px;font-weight:800;letter-spacing:4px;color:#007bff">{otp}</div>
      <p style="color:#666">This code will expire in <b>{OTP_EXPIRE_MINUTES} minutes</b>.</p>
      <p style="color:#666">If you didn't request this code, please secure your account.</p>
      {_footer()}
    </div>
    """
    send_email(to_email, f"Your Hugli {title} Code", text, html)


def send_verification_email(to_email: str, token: str):
    verification_url = f"{FRONTEND_URL}/verify-email?token={token}"

    text = f"Please verify your email by opening this link: {verification_url}"
    html = f"""
    <div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto">
      <h2 style="color:#333">Welcome to Hugli!</h2>
      <p>Please verify your email address to complete your registration.</p>
      <p><a href="{verification_url}">Verify Email Address</a></p>
      <p style="color:#007bff;word-break:break-all">{verification_url}</p>
      <p style="color:#666">This link will expire in 24 hours.</p>
      {_footer()}
    </div>
    """
    send_email(to_email, "Verify Your Hugli Account", text, html)


def send_password_reset_email(to_email: str, token: str):
    reset_url = f"{FRONTEND_URL}/reset-password?token={token}"

    text = f"Reset your password by opening this link: {reset_url}"
    html = f"""
    <div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto">
      <h2 style="color:#333">Password Reset Request</h2>
      <p>You requested to reset your password.</p>
      <p><a href="{reset_url}">Reset Password</a></p>
      <p style="color:#007bff;word-break:break-all">{reset_url}</p>
      <p style="color:#666">This link will expire in 1 hour. If you didn't request it, ignore this email.</p>
      {_footer()}
    </div>
    """
    send_email(to_email, "Reset Your Hugli Account Password", text, html)


def deliver(send, *args) -> bool:
    """Run one of the send_* functions and report whether it went out."""
    try:
        send(*args)
        return True
    except EmailDeliveryError as e:
        logger.error("Email delivery failed: %s", e)
        return False
