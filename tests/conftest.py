"""
Shared pytest fixtures for the CLIREC wizard API test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - owner / other_user / admin: Pre-created users
    - make_user / auth_headers: helpers for ad-hoc users and bearer headers
"""

import pytest

from clirec import create_app
from clirec.models import db as _db
from clirec.models.auth import ROLE_ADMIN, ROLE_USER, User
from clirec.services.jwt_service import generate_access_token
from clirec.services.permission import Actor
from clirec.utils.crypto import hash_password

TEST_PASSWORD = "Passw0rd!123"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Users & tokens ───────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture()
def make_user(password_hash):
    """Factory: create and commit a User row."""
    def _make(email, role=ROLE_USER, full_name="Test User"):
        user = User(
            email=email,
            password_hash=password_hash,
            full_name=full_name,
            role=role,
        )
        _db.session.add(user)
        _db.session.commit()
        return user
    return _make


@pytest.fixture()
def owner(make_user):
    return make_user("alice@acme-bank.com", full_name="Alice Owner")


@pytest.fixture()
def other_user(make_user):
    return make_user("bob@acme-bank.com", full_name="Bob Other")


@pytest.fixture()
def admin(make_user):
    return make_user("admin@clirec.com", role=ROLE_ADMIN, full_name="CLIREC Administrator")


@pytest.fixture()
def auth_headers():
    """Factory: bearer header for a User row."""
    def _headers(user):
        return {"Authorization": f"Bearer {generate_access_token(user)}"}
    return _headers


@pytest.fixture()
def owner_actor(owner):
    return Actor.from_user(owner)


@pytest.fixture()
def other_actor(other_user):
    return Actor.from_user(other_user)


@pytest.fixture()
def admin_actor(admin):
    return Actor.from_user(admin)
