import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from printshop.core.deps import get_db, get_current_user
from printshop.core.exceptions import ValidationError, AuthenticationError
from printshop.core.security import hash_password, verify_password, dummy_verify, create_access_token
from printshop.database import transaction
from printshop.models.auth_models import (
    User, UserAddress, ROLE_USER, STATUS_PENDING, STATUS_ACTIVE, PURPOSE_EMAIL_VERIFICATION,
)
from printshop.models.auth_schemas import RegisterBody, LoginBody, AddressBody
from printshop.services import email_service, otp_service, order_service
from printshop.services.user_service import serialize_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

INVALID_LOGIN = "Invalid email or password"


def user_payload(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "company": user.company,
        "role": user.role,
    }


def authenticate(db: Session, email: str, password: str) -> User:
    """
    Password check shared by customer and admin login.

    Unknown email and wrong password raise the very same error, and an
    unknown email still pays for one bcrypt round.
    """
    user = db.query(User).filter(User.email == email).first()
    if not user:
        dummy_verify()
        raise AuthenticationError(INVALID_LOGIN)

    if not verify_password(password, user.password_hash):
        raise AuthenticationError(INVALID_LOGIN)

    return user


# ----------------- REGISTER -----------------
@router.post("/register", status_code=201)
def register(body: RegisterBody, db: Session = Depends(get_db)):

    email = body.email.strip()

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise ValidationError("User with this email already exists")

    user = User(
        name=body.name.strip(),
        email=email,
        password_hash=hash_password(body.password),
        phone=body.phone or None,
        company=body.company or None,
        role=ROLE_USER,
        status=STATUS_PENDING,
        email_verified=False,
    )

    try:
        with transaction(db):
            db.add(user)
            db.flush()
            otp = otp_service.store_otp(db, email, PURPOSE_EMAIL_VERIFICATION)
    except IntegrityError:
        # lost a race with a concurrent registration
        raise ValidationError("User with this email already exists")

    logger.info("User registered: %s", email)

    email_sent = email_service.deliver(email_service.send_otp_email, email, otp, PURPOSE_EMAIL_VERIFICATION)

    message = "User registered successfully. Please check your email for the OTP to verify your account."
    if not email_sent:
        message = "User registered successfully, but the verification email could not be sent. Please request a new OTP."

    return {
        "success": True,
        "message": message,
        "requiresVerification": True,
        "verificationType": "otp",
        "emailSent": email_sent,
        "user": {**user_payload(user), "email_verified": False},
    }


# ----------------- LOGIN -----------------
@router.post("/login")
def login(body: LoginBody, db: Session = Depends(get_db)):

    user = authenticate(db, body.email.strip(), body.password)

    if not user.email_verified:
        raise AuthenticationError(
            "Please verify your email before logging in",
            extra={"requiresVerification": True},
        )

    if user.status != STATUS_ACTIVE:
        raise AuthenticationError("Account is inactive")

    logger.info("Login successful: %s", user.email)

    return {
        "success": True,
        "message": "Login successful",
        "token": create_access_token(user),
        "user": user_payload(user),
    }


# ----------------- PROFILE -----------------
@router.get("/profile")
def profile(user: User = Depends(get_current_user)):
    return {"success": True, "user": serialize_user(user)}


# ----------------- ADDRESSES -----------------
def serialize_address(a: UserAddress) -> dict:
    return {
        "id": a.id,
        "user_id": a.user_id,
        "name": a.name,
        "phone": a.phone,
        "address": a.address,
        "city": a.city,
        "state": a.state,
        "pincode": a.pincode,
        "country": a.country,
        "is_default": bool(a.is_default),
        "created_at": a.created_at,
    }


@router.get("/addresses")
def list_addresses(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = (
        db.query(UserAddress)
        .filter(UserAddress.user_id == user.id)
        .order_by(UserAddress.is_default.desc(), UserAddress.created_at.desc(), UserAddress.id.desc())
        .all()
    )
    return {"success": True, "addresses": [serialize_address(a) for a in rows]}


@router.post("/addresses", status_code=201)
def add_address(body: AddressBody, user: User = Depends(get_current_user), db: Session = Depends(get_db)):

    if not body.name or not body.phone or not body.address:
        raise ValidationError("Name, phone, and address are required")

    address = UserAddress(
        user_id=user.id,
        name=body.name,
        phone=body.phone,
        address=body.address,
        city=body.city,
        state=body.state,
        pincode=body.pincode,
        country=body.country or "India",
        is_default=body.is_default,
    )

    with transaction(db):
        if body.is_default:
            db.query(UserAddress).filter(UserAddress.user_id == user.id).update(
                {UserAddress.is_default: False}, synchronize_session=False
            )
        db.add(address)

    return {
        "success": True,
        "message": "Address added successfully",
        "address": serialize_address(address),
    }


# ----------------- MY ORDERS -----------------
@router.get("/orders")
def my_orders(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    orders = order_service.list_orders(db, user=user)
    logger.info("Fetched %d order(s) for user %s", len(orders), user.id)
    return {"success": True, "orders": [order_service.serialize_order(o) for o in orders]}
