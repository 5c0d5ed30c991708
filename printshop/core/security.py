import hashlib
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError as PydanticValidationError

from printshop.core.config import (
    JWT_SECRET, JWT_ALGO, BCRYPT_ROUNDS,
    SESSION_TOKEN_EXPIRE_DAYS, ADMIN_TOKEN_EXPIRE_HOURS,
)
from printshop.core.exceptions import AuthenticationError
from printshop.models.auth_models import ROLE_ADMIN

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def _prehash(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def hash_password(password: str) -> str:
    """Hash password using SHA256 pre-hashing to avoid bcrypt's 72-byte limit."""
    return pwd_context.hash(_prehash(password))


def verify_password(password: str, hashed: str) -> bool:
    """Verify password against bcrypt hash (constant-time compare inside passlib)."""
    return pwd_context.verify(_prehash(password), hashed)


def dummy_verify():
    """Spend the same time as a real verify when there is no user to check against."""
    pwd_context.dummy_verify()


class SessionClaims(BaseModel):
    user_id: int
    email: str
    name: Optional[str] = None
    role: str


def can_administer(claims: SessionClaims) -> bool:
    return claims.role == ROLE_ADMIN


def create_access_token(user, expires_delta: timedelta = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(days=SESSION_TOKEN_EXPIRE_DAYS)
    payload = {
        "user_id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "type": "access",
        "exp": datetime.utcnow() + expires_delta,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGO)


def create_admin_token(user) -> str:
    return create_access_token(user, timedelta(hours=ADMIN_TOKEN_EXPIRE_HOURS))


def decode_access_token(token: str) -> SessionClaims:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGO])
    except JWTError:
        raise AuthenticationError("Invalid or expired token")

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    try:
        return SessionClaims(**payload)
    except PydanticValidationError:
        raise AuthenticationError("Invalid or expired token")
