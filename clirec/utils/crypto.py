"""
Crypto utilities — bcrypt password hashing.

Accepts $2b$ hashes (written here) as well as $2a$ and $2y$ hashes produced
by other bcrypt implementations, so imported accounts keep working.
"""

import bcrypt

BCRYPT_ROUNDS = 12


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password with bcrypt (12 rounds)."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain-text password against its bcrypt hash."""
    if not password_hash or not plain_password:
        return False

    if not password_hash.startswith(("$2b$", "$2a$", "$2y$")):
        return False

    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # Malformed hash (truncated column, manual edit)
        return False
