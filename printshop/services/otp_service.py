"""
One-time code and link token lifecycle.

A code goes absent -> issued -> consumed, or silently expires. Issuing
replaces every unused code for the same (email, purpose); consuming is a
conditional update on the row id so a code can only ever be used once.

The store_* / consume_* helpers never commit: callers wrap them in
`database.transaction` together with whatever side effect the code unlocks.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from printshop.core.config import (
    OTP_EXPIRE_MINUTES, EMAIL_VERIFICATION_EXPIRE_HOURS, PASSWORD_RESET_EXPIRE_HOURS,
)
from printshop.database import transaction
from printshop.models.auth_models import OTPCode, EmailVerification, PasswordResetToken

logger = logging.getLogger(__name__)


def generate_otp() -> str:
    return str(100000 + secrets.randbelow(900000))


def generate_token() -> str:
    return secrets.token_hex(32)


# ---------------- OTP codes ----------------

def store_otp(db: Session, email: str, purpose: str) -> str:
    db.query(OTPCode).filter(
        OTPCode.email == email,
        OTPCode.purpose == purpose,
        OTPCode.used == False,  # noqa: E712
    ).delete(synchronize_session=False)

    otp = generate_otp()
    db.add(OTPCode(
        email=email,
        otp_code=otp,
        purpose=purpose,
        expires_at=datetime.utcnow() + timedelta(minutes=OTP_EXPIRE_MINUTES),
        used=False,
    ))
    db.flush()
    return otp


def issue_otp(db: Session, email: str, purpose: str) -> str:
    with transaction(db):
        otp = store_otp(db, email, purpose)
    logger.info("Issued %s OTP for %s", purpose, email)
    return otp


def consume_otp(db: Session, email: str, otp: str, purpose: str) -> bool:
    row = (
        db.query(OTPCode)
        .filter(
            OTPCode.email == email,
            OTPCode.otp_code == otp,
            OTPCode.purpose == purpose,
            OTPCode.used == False,  # noqa: E712
            OTPCode.expires_at > datetime.utcnow(),
        )
        .order_by(OTPCode.id.desc())
        .first()
    )
    if not row:
        return False

    updated = (
        db.query(OTPCode)
        .filter(OTPCode.id == row.id, OTPCode.used == False)  # noqa: E712
        .update({OTPCode.used: True}, synchronize_session=False)
    )
    # another request consumed it between our select and update
    return updated == 1


# ---------------- Email verification links ----------------

def store_email_verification(db: Session, user) -> str:
    db.query(EmailVerification).filter(
        EmailVerification.user_id == user.id,
        EmailVerification.verified == False,  # noqa: E712
    ).delete(synchronize_session=False)

    token = generate_token()
    db.add(EmailVerification(
        user_id=user.id,
        email=user.email,
        verification_token=token,
        expires_at=datetime.utcnow() + timedelta(hours=EMAIL_VERIFICATION_EXPIRE_HOURS),
        verified=False,
    ))
    db.flush()
    return token


def consume_email_verification(db: Session, token: str) -> Optional[EmailVerification]:
    row = db.query(EmailVerification).filter(
        EmailVerification.verification_token == token,
        EmailVerification.verified == False,  # noqa: E712
        EmailVerification.expires_at > datetime.utcnow(),
    ).first()
    if not row:
        return None

    updated = (
        db.query(EmailVerification)
        .filter(EmailVerification.id == row.id, EmailVerification.verified == False)  # noqa: E712
        .update({EmailVerification.verified: True}, synchronize_session=False)
    )
    return row if updated == 1 else None


# ---------------- Password reset links ----------------

def store_password_reset(db: Session, user) -> str:
    db.query(PasswordResetToken).filter(
        PasswordResetToken.user_id == user.id,
        PasswordResetToken.used == False,  # noqa: E712
    ).delete(synchronize_session=False)

    token = generate_token()
    db.add(PasswordResetToken(
        user_id=user.id,
        reset_token=token,
        expires_at=datetime.utcnow() + timedelta(hours=PASSWORD_RESET_EXPIRE_HOURS),
        used=False,
    ))
    db.flush()
    return token


def consume_password_reset(db: Session, token: str) -> Optional[PasswordResetToken]:
    row = db.query(PasswordResetToken).filter(
        PasswordResetToken.reset_token == token,
        PasswordResetToken.used == False,  # noqa: E712
        PasswordResetToken.expires_at > datetime.utcnow(),
    ).first()
    if not row:
        return None

    updated = (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.id == row.id, PasswordResetToken.used == False)  # noqa: E712
        .update({PasswordResetToken.used: True}, synchronize_session=False)
    )
    return row if updated == 1 else None
