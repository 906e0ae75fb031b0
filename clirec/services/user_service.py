"""
User Service — registration, authentication, lookup, seeding.
"""

import logging

from email_validator import EmailNotValidError, validate_email

from clirec.core.exceptions import ConflictError, ValidationError
from clirec.models import db
from clirec.models.auth import ROLE_ADMIN, ROLE_USER, ROLES, User
from clirec.utils.crypto import hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

DEFAULT_USERS = (
    {
        "email": "admin@clirec.com",
        "password": "Admin123!",
        "full_name": "CLIREC Administrator",
        "role": ROLE_ADMIN,
    },
    {
        "email": "user@clirec.com",
        "password": "User123!",
        "full_name": "Test User",
        "role": ROLE_USER,
    },
)


def normalize_email(email: str) -> str:
    """Validate syntax and return the normalized address (lower-cased)."""
    if not isinstance(email, str):
        raise ValidationError("Invalid email: must be a string", details={"email": "invalid"})
    try:
        valid = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": "invalid"})
    return valid.normalized.lower()


def create_user(email: str, password: str, full_name: str = "", role: str = ROLE_USER) -> User:
    """Create a user; raises ConflictError on duplicate email."""
    if role not in ROLES:
        raise ValidationError(f"Unknown role: {role}", details={"role": "invalid"})
    if not isinstance(password, str):
        raise ValidationError("Password must be a string", details={"password": "invalid"})
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            details={"password": "too_short"},
        )
    email = normalize_email(email)

    if User.query.filter_by(email=email).first():
        raise ConflictError("User", "email", email)

    user = User(
        email=email,
        password_hash=hash_password(password),
        full_name=full_name.strip() if isinstance(full_name, str) else "",
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    logger.info("User registered id=%s role=%s", user.id, user.role)
    return user


def register_user(email: str, password: str, full_name: str = "") -> User:
    """Public self-registration — always role User."""
    return create_user(email, password, full_name, role=ROLE_USER)


def authenticate_user(email: str, password: str) -> User | None:
    """Return the user when email + password match, else None."""
    if not isinstance(password, str):
        return None
    try:
        email = normalize_email(email)
    except ValidationError:
        return None
    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email)
        return None
    return user


def get_user_by_id(user_id: int) -> User | None:
    """Find a user by ID."""
    return db.session.get(User, user_id)


def seed_default_users() -> list[str]:
    """Create the default Admin and User accounts if missing (idempotent).

    Returns the emails that were created.
    """
    created = []
    for account in DEFAULT_USERS:
        if User.query.filter_by(email=account["email"]).first():
            logger.info("User already exists: %s", account["email"])
            continue
        create_user(account["email"], account["password"], account["full_name"], role=account["role"])
        created.append(account["email"])
    return created
