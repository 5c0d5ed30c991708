from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from printshop.database import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"

STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"
USER_STATUSES = (STATUS_PENDING, STATUS_ACTIVE, STATUS_INACTIVE)

PURPOSE_LOGIN = "login"
PURPOSE_PASSWORD_RESET = "password_reset"
PURPOSE_EMAIL_VERIFICATION = "email_verification"
OTP_PURPOSES = (PURPOSE_LOGIN, PURPOSE_PASSWORD_RESET, PURPOSE_EMAIL_VERIFICATION)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column("password", String(255), nullable=False)

    phone = Column(String(20), nullable=True)
    company = Column(String(255), nullable=True)

    role = Column(String(20), nullable=False, default=ROLE_USER)
    status = Column(String(20), nullable=False, default=STATUS_PENDING)
    email_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    orders = relationship("Order", back_populates="user", cascade="all, delete-orphan")
    addresses = relationship("UserAddress", back_populates="user", cascade="all, delete-orphan")
    email_verifications = relationship("EmailVerification", cascade="all, delete-orphan")
    reset_tokens = relationship("PasswordResetToken", cascade="all, delete-orphan")


class OTPCode(Base):
    __tablename__ = "otp_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(String(255), nullable=False, index=True)
    otp_code = Column(String(6), nullable=False)
    purpose = Column(String(32), nullable=False)  # login / password_reset / email_verification

    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now())


class EmailVerification(Base):
    __tablename__ = "email_verifications"

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    email = Column(String(255), nullable=False)
    verification_token = Column(String(255), unique=True, nullable=False)

    expires_at = Column(DateTime, nullable=False)
    verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now())


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reset_token = Column(String(255), unique=True, nullable=False)

    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now())


class UserAddress(Base):
    __tablename__ = "user_addresses"

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    address = Column(String(500), nullable=False)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    pincode = Column(String(20), nullable=True)
    country = Column(String(100), nullable=False, default="India")
    is_default = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="addresses")
