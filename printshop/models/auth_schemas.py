from typing import Annotated, Optional, Literal

from email_validator import validate_email, EmailNotValidError
from pydantic import BaseModel, Field, AfterValidator


def check_email(value: str) -> str:
    """Reject malformed addresses but keep the stripped input as typed."""
    value = value.strip()
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"value is not a valid email address: {e}")
    return value


# stored and looked up exactly as the user typed it
Email = Annotated[str, AfterValidator(check_email)]


# -------- Register / Login --------
class RegisterBody(BaseModel):
    name: str = Field(..., min_length=1)
    email: Email
    password: str = Field(..., min_length=6)
    phone: Optional[str] = None
    company: Optional[str] = None


class LoginBody(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# -------- OTP --------
class EmailBody(BaseModel):
    email: Email


class VerifyOTPBody(BaseModel):
    email: Email
    otp: str = Field(..., min_length=1)


# -------- Password reset --------
class ForgotPasswordBody(BaseModel):
    email: Email
    method: Literal["otp", "link"] = "otp"


class ResetPasswordBody(BaseModel):
    # either email + otp, or token from the reset link
    email: Optional[Email] = None
    otp: Optional[str] = None
    token: Optional[str] = None
    newPassword: str = Field(..., min_length=6)


# -------- Addresses --------
class AddressBody(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None
    is_default: bool = False
