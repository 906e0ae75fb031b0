"""
Auth Models — users and their role.

A user owns zero or more AccountRequirements. ``role`` is either
``User`` (wizard submitter) or ``Admin`` (reviewer); it is set by the seed
script / DBA, never through the public API.
"""

from datetime import datetime, timezone

from clirec.models import db

ROLE_USER = "User"
ROLE_ADMIN = "Admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=False, default="")
    role = db.Column(db.String(50), nullable=False, default=ROLE_USER)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    requirements = db.relationship(
        "AccountRequirement", back_populates="user", lazy="dynamic",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def display_name(self) -> str:
        """full_name, falling back to email."""
        return self.full_name or self.email

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "role": self.role,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.email} ({self.role})>"
