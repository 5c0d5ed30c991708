import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from printshop.core.deps import get_db
from printshop.core.exceptions import ValidationError, NotFoundError, AuthenticationError
from printshop.core.security import hash_password, create_access_token
from printshop.database import transaction
from printshop.models.auth_models import (
    User, STATUS_ACTIVE, STATUS_INACTIVE,
    PURPOSE_LOGIN, PURPOSE_PASSWORD_RESET, PURPOSE_EMAIL_VERIFICATION,
)
from printshop.models.auth_schemas import EmailBody, VerifyOTPBody, ForgotPasswordBody, ResetPasswordBody
from printshop.routers.auth import user_payload
from printshop.services import email_service, otp_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["OTP"])

INVALID_OTP = "Invalid or expired OTP"


def find_user(db: Session, email: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def issued(message: str, email_sent: bool, **extra) -> dict:
    """Issuance succeeded once stored; delivery is reported on the side."""
    if not email_sent:
        message = "Code generated, but the email could not be delivered. Please try again shortly."
    return {"success": True, "message": message, "emailSent": email_sent, **extra}


def activate(user: User):
    user.email_verified = True
    user.status = STATUS_ACTIVE


# ---------------- OTP LOGIN ----------------
@router.post("/send-otp")
def send_otp(body: EmailBody, db: Session = Depends(get_db)):

    email = body.email.strip()
    find_user(db, email)

    otp = otp_service.issue_otp(db, email, PURPOSE_LOGIN)
    email_sent = email_service.deliver(email_service.send_otp_email, email, otp, PURPOSE_LOGIN)

    return issued("OTP sent successfully", email_sent)


@router.post("/verify-otp")
def verify_otp(body: VerifyOTPBody, db: Session = Depends(get_db)):

    email = body.email.strip()
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise ValidationError(INVALID_OTP)

    with transaction(db):
        if not otp_service.consume_otp(db, email, body.otp.strip(), PURPOSE_LOGIN):
            raise ValidationError(INVALID_OTP)

        # only a caller holding a valid code learns the account state; the code stays unused
        if user.status == STATUS_INACTIVE:
            raise AuthenticationError("Account is inactive")

    logger.info("OTP login successful: %s", email)

    return {
        "success": True,
        "message": "Login successful",
        "token": create_access_token(user),
        "user": user_payload(user),
    }


# ---------------- EMAIL VERIFICATION (OTP) ----------------
@router.post("/verify-email-otp")
def verify_email_otp(body: VerifyOTPBody, db: Session = Depends(get_db)):

    email = body.email.strip()

    with transaction(db):
        if not otp_service.consume_otp(db, email, body.otp.strip(), PURPOSE_EMAIL_VERIFICATION):
            raise ValidationError(INVALID_OTP)

        user = db.query(User).filter(User.email == email).first()
        if not user:
            raise NotFoundError("User not found")
        activate(user)

    logger.info("Email verified: %s", email)

    return {"success": True, "message": "Email verified successfully! You can now login to your account."}


@router.post("/resend-verification-otp")
def resend_verification_otp(body: EmailBody, db: Session = Depends(get_db)):

    email = body.email.strip()
    user = find_user(db, email)
    if user.email_verified:
        raise ValidationError("Email already verified")

    otp = otp_service.issue_otp(db, email, PURPOSE_EMAIL_VERIFICATION)
    email_sent = email_service.deliver(email_service.send_otp_email, email, otp, PURPOSE_EMAIL_VERIFICATION)

    return issued("OTP sent successfully", email_sent)


# ---------------- EMAIL VERIFICATION (LINK) ----------------
@router.post("/send-verification")
def send_verification(body: EmailBody, db: Session = Depends(get_db)):

    email = body.email.strip()
    user = find_user(db, email)
    if user.email_verified:
        raise ValidationError("Email already verified")

    with transaction(db):
        token = otp_service.store_email_verification(db, user)

    email_sent = email_service.deliver(email_service.send_verification_email, email, token)

    return issued("Verification email sent successfully", email_sent)


@router.get("/verify-email")
def verify_email(token: Optional[str] = None, db: Session = Depends(get_db)):

    if not token:
        raise ValidationError("Verification token is required")

    with transaction(db):
        record = otp_service.consume_email_verification(db, token)
        if record is None:
            raise ValidationError("Invalid or expired verification token")

        user = db.query(User).filter(User.id == record.user_id).first()
        if not user:
            raise NotFoundError("User not found")
        activate(user)

    logger.info("Email verified by link for user %s", record.user_id)

    return {"success": True, "message": "Email verified successfully"}


# ---------------- PASSWORD RESET ----------------
@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordBody, db: Session = Depends(get_db)):

    email = body.email.strip()
    user = find_user(db, email)

    if body.method == "link":
        with transaction(db):
            token = otp_service.store_password_reset(db, user)
        email_sent = email_service.deliver(email_service.send_password_reset_email, email, token)
        return issued("Password reset link sent successfully. Please check your email.", email_sent, email=email)

    otp = otp_service.issue_otp(db, email, PURPOSE_PASSWORD_RESET)
    email_sent = email_service.deliver(email_service.send_otp_email, email, otp, PURPOSE_PASSWORD_RESET)

    return issued(
        "Password reset OTP sent successfully. Please check your email.",
        email_sent,
        requiresOTP=True,
        email=email,
    )


@router.post("/reset-password")
def reset_password(body: ResetPasswordBody, db: Session = Depends(get_db)):

    if body.token:
        with transaction(db):
            record = otp_service.consume_password_reset(db, body.token)
            if record is None:
                raise ValidationError("Invalid or expired reset token")

            user = db.query(User).filter(User.id == record.user_id).first()
            if not user:
                raise NotFoundError("User not found")
            user.password_hash = hash_password(body.newPassword)

    elif body.email and body.otp:
        email = body.email.strip()
        with transaction(db):
            if not otp_service.consume_otp(db, email, body.otp.strip(), PURPOSE_PASSWORD_RESET):
                raise ValidationError(INVALID_OTP)

            user = db.query(User).filter(User.email == email).first()
            if not user:
                raise NotFoundError("User not found")
            user.password_hash = hash_password(body.newPassword)

    else:
        raise ValidationError("Email and OTP, or a reset token, are required")

    logger.info("Password reset for user %s", user.id)

    return {"success": True, "message": "Password reset successfully"}
