"""
Auth tests.

Tests cover:
  - Password hashing (bcrypt)
  - JWT token generation / verification / expiry
  - Auth API: register, login, me
  - Default user seeding
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from clirec.core.exceptions import ValidationError
from clirec.models.auth import ROLE_ADMIN, ROLE_USER, User
from clirec.services.jwt_service import decode_access_token, decode_token, generate_access_token
from clirec.services.user_service import (
    DEFAULT_USERS,
    authenticate_user,
    create_user,
    seed_default_users,
)
from clirec.utils.crypto import hash_password, verify_password

TEST_PASSWORD = "Passw0rd!123"  # matches the conftest password_hash fixture


# ═══════════════════════════════════════════════════════════════
# Password hashing
# ═══════════════════════════════════════════════════════════════

class TestCrypto:
    def test_hash_and_verify(self, password_hash):
        assert password_hash.startswith("$2b$")
        assert verify_password(TEST_PASSWORD, password_hash) is True

    def test_wrong_password(self, password_hash):
        assert verify_password("nope-nope", password_hash) is False

    def test_2a_prefix_accepted(self, password_hash):
        legacy = "$2a$" + password_hash[4:]
        assert verify_password(TEST_PASSWORD, legacy) is True

    @pytest.mark.parametrize("stored", ["", None, "plaintext", "$2b$12$truncated"])
    def test_unusable_hashes(self, stored):
        assert verify_password(TEST_PASSWORD, stored) is False

    def test_salted(self):
        assert hash_password("same-password") != hash_password("same-password")


# ═══════════════════════════════════════════════════════════════
# JWT
# ═══════════════════════════════════════════════════════════════

class TestJWT:
    def test_payload(self, owner):
        payload = decode_access_token(generate_access_token(owner))
        assert payload["sub"] == str(owner.id)
        assert payload["role"] == ROLE_USER
        assert payload["email"] == "alice@acme-bank.com"
        assert payload["type"] == "access"
        assert payload["exp"] - payload["iat"] == 3600

    def test_wrong_type_rejected(self, owner):
        token = generate_access_token(owner)
        with pytest.raises(jwt.InvalidTokenError):
            decode_token(token, expected_type="refresh")

    def test_tampered_secret_rejected(self, owner):
        forged = jwt.encode({"sub": str(owner.id), "role": ROLE_ADMIN, "type": "access"},
                            "someone-elses-secret", algorithm="HS256")
        with pytest.raises(jwt.InvalidSignatureError):
            decode_access_token(forged)

    def test_expired_token_is_401(self, client, owner):
        now = datetime.now(timezone.utc)
        expired = jwt.encode({
            "sub": str(owner.id), "role": ROLE_USER, "type": "access",
            "iat": now - timedelta(hours=2), "exp": now - timedelta(hours=1),
        }, "test-jwt-secret", algorithm="HS256")
        res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
        assert res.status_code == 401


# ═══════════════════════════════════════════════════════════════
# Register
# ═══════════════════════════════════════════════════════════════

class TestRegister:
    def test_register_201(self, client):
        res = client.post("/api/auth/register", json={
            "email": "New.Person@Acme-Bank.com",
            "password": "Secur3Pass!",
            "fullName": "New Person",
        })
        assert res.status_code == 201
        data = res.get_json()
        assert data["token"]
        assert data["token_type"] == "Bearer"
        assert data["user"]["email"] == "new.person@acme-bank.com"
        assert data["user"]["role"] == ROLE_USER
        assert User.query.filter_by(email="new.person@acme-bank.com").count() == 1

    def test_role_cannot_be_self_assigned(self, client):
        res = client.post("/api/auth/register", json={
            "email": "sneaky@acme-bank.com", "password": "Secur3Pass!", "role": ROLE_ADMIN,
        })
        assert res.status_code == 201
        assert res.get_json()["user"]["role"] == ROLE_USER

    def test_duplicate_400(self, client, owner):
        res = client.post("/api/auth/register", json={
            "email": "alice@acme-bank.com", "password": "Secur3Pass!",
        })
        assert res.status_code == 400
        assert res.get_json()["message"] == "User already exists"

    def test_missing_fields_400(self, client):
        res = client.post("/api/auth/register", json={"email": "x@acme-bank.com"})
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"

    @pytest.mark.parametrize("body,field", [
        ({"email": "num@acme-bank.com", "password": 12345678}, "password"),
        ({"email": 5, "password": "Secur3Pass!"}, "email"),
        ({"email": ["x@acme-bank.com"], "password": "Secur3Pass!"}, "email"),
        ({"email": "n@acme-bank.com", "password": "Secur3Pass!", "fullName": 7}, "fullName"),
    ])
    def test_non_string_fields_400(self, client, body, field):
        res = client.post("/api/auth/register", json=body)
        assert res.status_code == 400
        data = res.get_json()
        assert data["code"] == "ERR_VALIDATION_INVALID"
        assert data["details"] == {field: "invalid"}
        assert User.query.count() == 0

    def test_body_must_be_object_400(self, client):
        res = client.post("/api/auth/register", json=["email", "password"])
        assert res.status_code == 400

    def test_create_user_rejects_non_string_password(self):
        with pytest.raises(ValidationError) as exc:
            create_user("svc@acme-bank.com", 12345678)
        assert exc.value.details == {"password": "invalid"}

    def test_short_password_400(self, client):
        res = client.post("/api/auth/register", json={
            "email": "short@acme-bank.com", "password": "abc",
        })
        assert res.status_code == 400
        assert res.get_json()["details"] == {"password": "too_short"}

    def test_invalid_email_400(self, client):
        res = client.post("/api/auth/register", json={
            "email": "not-an-email", "password": "Secur3Pass!",
        })
        assert res.status_code == 400
        assert res.get_json()["details"] == {"email": "invalid"}


# ═══════════════════════════════════════════════════════════════
# Login + me
# ═══════════════════════════════════════════════════════════════

class TestLogin:
    def test_login_200(self, client, owner):
        res = client.post("/api/auth/login", json={
            "email": "alice@acme-bank.com", "password": TEST_PASSWORD,
        })
        assert res.status_code == 200
        data = res.get_json()
        assert data["user"]["id"] == owner.id
        assert data["user"]["fullName"] == "Alice Owner"
        assert decode_access_token(data["token"])["sub"] == str(owner.id)

    def test_login_email_case_insensitive(self, client, owner):
        res = client.post("/api/auth/login", json={
            "email": "ALICE@acme-bank.com", "password": TEST_PASSWORD,
        })
        assert res.status_code == 200

    def test_wrong_password_400(self, client, owner):
        res = client.post("/api/auth/login", json={
            "email": "alice@acme-bank.com", "password": "wrong-password",
        })
        assert res.status_code == 400
        assert res.get_json()["message"] == "Invalid credentials"

    def test_unknown_user_400(self, client):
        res = client.post("/api/auth/login", json={
            "email": "ghost@acme-bank.com", "password": TEST_PASSWORD,
        })
        assert res.status_code == 400
        assert res.get_json()["message"] == "Invalid credentials"

    def test_missing_fields_400(self, client):
        res = client.post("/api/auth/login", json={})
        assert res.status_code == 400

    def test_token_works_on_protected_route(self, client, owner):
        token = client.post("/api/auth/login", json={
            "email": "alice@acme-bank.com", "password": TEST_PASSWORD,
        }).get_json()["token"]
        res = client.get("/api/requirements", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 200
        assert res.get_json() == []


    @pytest.mark.parametrize("body", [
        {"email": 5, "password": TEST_PASSWORD},
        {"email": "alice@acme-bank.com", "password": 12345678},
    ])
    def test_non_string_credentials_400(self, client, owner, body):
        res = client.post("/api/auth/login", json=body)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_malformed_json_400(self, client):
        res = client.post("/api/auth/login", data="{not json",
                          headers={"Content-Type": "application/json"})
        assert res.status_code == 400

    def test_authenticate_user_non_string_password(self, owner):
        assert authenticate_user("alice@acme-bank.com", 12345678) is None


class TestMe:
    def test_me(self, client, admin, auth_headers):
        res = client.get("/api/auth/me", headers=auth_headers(admin))
        assert res.status_code == 200
        data = res.get_json()
        assert data["email"] == "admin@clirec.com"
        assert data["role"] == ROLE_ADMIN
        assert "passwordHash" not in data and "password_hash" not in data

    def test_me_without_token_401(self, client):
        assert client.get("/api/auth/me").status_code == 401


# ═══════════════════════════════════════════════════════════════
# Seeding
# ═══════════════════════════════════════════════════════════════

class TestSeed:
    def test_seed_is_idempotent(self):
        created = seed_default_users()
        assert sorted(created) == sorted(u["email"] for u in DEFAULT_USERS)
        assert seed_default_users() == []
        admin = User.query.filter_by(email="admin@clirec.com").one()
        assert admin.role == ROLE_ADMIN
        assert verify_password("Admin123!", admin.password_hash)

    def test_seed_cli_command(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["seed-users"])
        assert result.exit_code == 0
        assert User.query.count() == len(DEFAULT_USERS)
