"""
CLIREC Onboarding Wizard API
Account requirement domain model.

Models:
    - AccountRequirement: one client's bank-reconciliation configuration,
      submitted through the onboarding wizard.

Status is a finite tag with no transition graph: any authorized actor may
move a requirement to any value in REQUIREMENT_STATUSES.
"""

from datetime import datetime, timezone

from clirec.models import db

# ── Constants ────────────────────────────────────────────────────────────────

STATUS_DRAFT = "Draft"
STATUS_SUBMITTED = "Submitted"
STATUS_APPROVED = "Approved"
STATUS_REJECTED = "Rejected"

REQUIREMENT_STATUSES = (STATUS_DRAFT, STATUS_SUBMITTED, STATUS_APPROVED, STATUS_REJECTED)

# Wire name → column name for the fields a caller may write.
EDITABLE_FIELDS = {
    "clientName": "client_name",
    "clientId": "client_id",
    "region": "region",
    "responseJson": "response_json",
    "status": "status",
}

# Fields snapshotted into audit previous_values (response_json is never audited).
AUDITED_FIELDS = ("clientName", "clientId", "region", "status")


def _utcnow():
    return datetime.now(timezone.utc)


class AccountRequirement(db.Model):
    """
    A wizard submission.

    ``user_id`` is the owner and never changes after creation.
    ``response_json`` holds the serialized wizard payload (client info +
    accounts) and is opaque to the API.
    """

    __tablename__ = "account_requirements"
    __table_args__ = (
        db.Index("idx_req_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_name = db.Column(db.String(255), nullable=False, default="")
    client_id = db.Column(db.String(100), nullable=False, default="")
    region = db.Column(db.String(100), nullable=False, default="")
    response_json = db.Column(db.Text, nullable=False, default="{}")
    status = db.Column(db.String(50), nullable=False, default=STATUS_DRAFT)
    is_locked = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    user = db.relationship("User", back_populates="requirements")

    # ── Helpers ──────────────────────────────────────────────────────────

    def touch(self):
        """Stamp ``updated_at``; called on every mutation."""
        self.updated_at = _utcnow()

    def audit_snapshot(self) -> dict:
        """Current values of the audited fields, keyed by wire name."""
        return {wire: getattr(self, EDITABLE_FIELDS[wire]) for wire in AUDITED_FIELDS}

    def to_dict(self, include_owner: bool = False) -> dict:
        d = {
            "id": self.id,
            "userId": self.user_id,
            "clientName": self.client_name,
            "clientId": self.client_id,
            "region": self.region,
            "responseJson": self.response_json,
            "status": self.status,
            "isLocked": bool(self.is_locked),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_owner:
            d["userEmail"] = self.user.email if self.user else None
            d["userFullName"] = self.user.full_name if self.user else None
        return d

    def __repr__(self):
        return f"<AccountRequirement {self.id}: {self.client_name} [{self.status}]>"
