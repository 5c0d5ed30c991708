"""
Tests for registration, password login and the self-service endpoints.
"""

from datetime import timedelta

import pytest
from jose import jwt

from printshop.core.exceptions import AuthenticationError
from printshop.core.security import (
    SessionClaims, can_administer, create_access_token, decode_access_token,
    hash_password, verify_password,
)
from printshop.models.auth_models import OTPCode, User, UserAddress, STATUS_INACTIVE, STATUS_PENDING

from conftest import PASSWORD, bearer, make_user


class TestRegister:
    """POST /api/auth/register"""

    def test_register_creates_pending_user(self, client, db, outbox):
        response = client.post(
            "/api/auth/register",
            json={"name": "New User", "email": "new@mail.com", "password": "NewUser@123", "company": "Hugli"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["requiresVerification"] is True
        assert data["emailSent"] is True
        assert data["user"]["email"] == "new@mail.com"
        assert data["user"]["email_verified"] is False

        user = db.query(User).filter(User.email == "new@mail.com").one()
        assert user.status == STATUS_PENDING
        assert user.email_verified is False
        assert user.password_hash != "NewUser@123"
        assert verify_password("NewUser@123", user.password_hash)

        code = db.query(OTPCode).filter(OTPCode.email == "new@mail.com").one()
        assert code.purpose == "email_verification"
        assert code.used is False
        assert outbox == [{"to": "new@mail.com", "otp": code.otp_code, "purpose": "email_verification"}]

    def test_register_duplicate_email(self, client, regular_user):
        response = client.post(
            "/api/auth/register",
            json={"name": "Dup", "email": regular_user.email, "password": "Password@123"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "User with this email already exists"

    def test_register_succeeds_when_email_cannot_be_sent(self, client, db):
        """SendGrid is not configured in tests, so delivery fails but the code is kept."""
        response = client.post(
            "/api/auth/register",
            json={"name": "No Mail", "email": "nomail@mail.com", "password": "Password@123"},
        )
        assert response.status_code == 201
        assert response.json()["emailSent"] is False
        assert db.query(OTPCode).filter(OTPCode.email == "nomail@mail.com").count() == 1

    @pytest.mark.parametrize("body", [
        {"email": "x@mail.com", "password": "Password@123"},
        {"name": "X", "password": "Password@123"},
        {"name": "X", "email": "x@mail.com"},
        {"name": "X", "email": "not-an-email", "password": "Password@123"},
    ])
    def test_register_validation(self, client, body):
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_register_then_verify_then_login(self, client, outbox):
        client.post("/api/auth/register", json={"name": "Flow", "email": "flow@mail.com", "password": "Flow@12345"})
        otp = outbox[-1]["otp"]

        response = client.post("/api/auth/verify-email-otp", json={"email": "flow@mail.com", "otp": otp})
        assert response.status_code == 200

        response = client.post("/api/auth/login", json={"email": "flow@mail.com", "password": "Flow@12345"})
        assert response.status_code == 200
        assert response.json()["token"]

    def test_mixed_case_email_is_kept_as_typed(self, client, db, outbox):
        email = "Ann@Example.COM"
        response = client.post("/api/auth/register", json={"name": "Ann", "email": f"  {email} ", "password": "Ann@12345"})
        assert response.status_code == 201
        assert response.json()["user"]["email"] == email
        assert db.query(User).filter(User.email == email).count() == 1

        verify = client.post("/api/auth/verify-email-otp", json={"email": email, "otp": outbox[-1]["otp"]})
        assert verify.status_code == 200

        login = client.post("/api/auth/login", json={"email": email, "password": "Ann@12345"})
        assert login.status_code == 200

        client.post("/api/orders", json={"items": [{"name": "Files"}], "customerInfo": {"name": "Ann", "email": email}})
        headers = {"Authorization": f"Bearer {login.json()['token']}"}
        orders = client.get("/api/auth/orders", headers=headers).json()["orders"]
        assert [o["customer_email"] for o in orders] == [email]


class TestLogin:
    """POST /api/auth/login"""

    def test_login_success(self, client, regular_user):
        response = client.post("/api/auth/login", json={"email": regular_user.email, "password": PASSWORD})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["user"]["email"] == regular_user.email

        claims = decode_access_token(data["token"])
        assert claims.user_id == regular_user.id
        assert claims.email == regular_user.email
        assert claims.name == regular_user.name
        assert claims.role == "user"

    def test_unknown_email_and_wrong_password_look_the_same(self, client, regular_user):
        unknown = client.post("/api/auth/login", json={"email": "ghost@mail.com", "password": PASSWORD})
        wrong = client.post("/api/auth/login", json={"email": regular_user.email, "password": "wrong-password"})

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {"success": False, "message": "Invalid email or password"}

    def test_email_match_is_exact(self, client, regular_user):
        response = client.post("/api/auth/login", json={"email": regular_user.email.upper(), "password": PASSWORD})
        assert response.status_code == 401

    def test_unverified_user(self, client, db):
        make_user(db, "pending@mail.com", status=STATUS_PENDING, verified=False)
        response = client.post("/api/auth/login", json={"email": "pending@mail.com", "password": PASSWORD})
        assert response.status_code == 401
        assert response.json()["requiresVerification"] is True

    def test_unverified_user_with_wrong_password_gets_generic_error(self, client, db):
        make_user(db, "pending@mail.com", status=STATUS_PENDING, verified=False)
        response = client.post("/api/auth/login", json={"email": "pending@mail.com", "password": "nope"})
        assert response.json() == {"success": False, "message": "Invalid email or password"}

    def test_inactive_user(self, client, db):
        make_user(db, "off@mail.com", status=STATUS_INACTIVE)
        response = client.post("/api/auth/login", json={"email": "off@mail.com", "password": PASSWORD})
        assert response.status_code == 401
        assert response.json()["message"] == "Account is inactive"


class TestSessionCredential:
    """Signed session tokens and the typed claim set."""

    def test_round_trip(self, regular_user):
        claims = decode_access_token(create_access_token(regular_user))
        assert isinstance(claims, SessionClaims)
        assert not can_administer(claims)

    def test_admin_capability(self, admin_user):
        assert can_administer(decode_access_token(create_access_token(admin_user)))

    def test_expired_token(self, regular_user):
        token = create_access_token(regular_user, timedelta(seconds=-1))
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_token_signed_with_other_secret(self, regular_user):
        token = jwt.encode(
            {"user_id": regular_user.id, "email": regular_user.email, "role": "admin", "type": "access"},
            "someone-elses-secret",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_long_passwords_hash(self):
        long_password = "p" * 200
        hashed = hash_password(long_password)
        assert verify_password(long_password, hashed)
        assert not verify_password("p" * 199, hashed)


class TestProfile:
    """GET /api/auth/profile"""

    def test_profile(self, client, regular_user, user_headers):
        response = client.get("/api/auth/profile", headers=user_headers)
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["email"] == regular_user.email
        assert "password" not in user
        assert "password_hash" not in user

    def test_profile_requires_token(self, client):
        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_profile_invalid_token(self, client):
        response = client.get("/api/auth/profile", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 401

    def test_profile_of_deleted_user(self, client, db):
        user = make_user(db, "gone@mail.com")
        headers = bearer(user)
        db.delete(user)
        db.commit()
        assert client.get("/api/auth/profile", headers=headers).status_code == 401


class TestAddresses:
    """GET/POST /api/auth/addresses"""

    def test_add_and_list(self, client, user_headers):
        response = client.post(
            "/api/auth/addresses",
            json={"name": "Home", "phone": "9876543210", "address": "12 Strand Rd", "city": "Kolkata"},
            headers=user_headers,
        )
        assert response.status_code == 201
        address = response.json()["address"]
        assert address["country"] == "India"
        assert address["is_default"] is False

        listed = client.get("/api/auth/addresses", headers=user_headers).json()["addresses"]
        assert [a["id"] for a in listed] == [address["id"]]

    def test_only_one_default(self, client, user_headers, regular_user, db):
        for label in ("Home", "Work"):
            client.post(
                "/api/auth/addresses",
                json={"name": label, "phone": "1", "address": label, "is_default": True},
                headers=user_headers,
            )

        defaults = db.query(UserAddress).filter(
            UserAddress.user_id == regular_user.id, UserAddress.is_default == True  # noqa: E712
        ).all()
        assert [a.name for a in defaults] == ["Work"]

        listed = client.get("/api/auth/addresses", headers=user_headers).json()["addresses"]
        assert listed[0]["name"] == "Work"

    def test_required_fields(self, client, user_headers):
        response = client.post("/api/auth/addresses", json={"name": "Home"}, headers=user_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Name, phone, and address are required"

    def test_requires_login(self, client):
        assert client.get("/api/auth/addresses").status_code == 401
