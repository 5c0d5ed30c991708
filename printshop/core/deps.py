import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from printshop.database import SessionLocal
from printshop.core.exceptions import AuthenticationError, ForbiddenError
from printshop.core.security import SessionClaims, decode_access_token, can_administer
from printshop.models.auth_models import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_claims(token: str = Depends(oauth2_scheme)) -> SessionClaims:
    return decode_access_token(token)


def get_optional_claims(token: Optional[str] = Depends(optional_oauth2_scheme)) -> Optional[SessionClaims]:
    if not token:
        return None
    try:
        return decode_access_token(token)
    except AuthenticationError:
        logger.debug("Ignoring invalid bearer token on public endpoint")
        return None


def get_current_user(db: Session = Depends(get_db), claims: SessionClaims = Depends(get_current_claims)):
    user = db.query(User).filter(User.id == claims.user_id).first()
    if not user:
        raise AuthenticationError("User not found")
    return user


def require_admin(claims: SessionClaims = Depends(get_current_claims)) -> SessionClaims:
    if not can_administer(claims):
        raise ForbiddenError("Admin access required")
    return claims


def get_optional_user(
    db: Session = Depends(get_db),
    claims: Optional[SessionClaims] = Depends(get_optional_claims),
) -> Optional[User]:
    if claims is None:
        return None
    user = db.query(User).filter(User.id == claims.user_id).first()
    if user is None:
        logger.debug("Bearer token refers to missing user %s; treating as anonymous", claims.user_id)
    return user
