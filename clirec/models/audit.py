"""
CLIREC Onboarding Wizard API
Audit domain model.

Models:
    - AuditLog: immutable, append-only audit trail of requirement mutations.
"""

import json
from datetime import datetime, timezone

from clirec.models import db

# ── Constants ────────────────────────────────────────────────────────────────

ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_DELETE = "DELETE"
ACTION_STATUS_CHANGE = "STATUS_CHANGE"
ACTION_LOCK = "LOCK"
ACTION_UNLOCK = "UNLOCK"

AUDIT_ACTIONS = {
    ACTION_CREATE,
    ACTION_UPDATE,
    ACTION_DELETE,
    ACTION_STATUS_CHANGE,
    ACTION_LOCK,
    ACTION_UNLOCK,
}

# Keys never persisted in changes / previous_values (wizard payload is too large).
EXCLUDED_AUDIT_KEYS = frozenset({"responseJson", "response_json"})


def _load(raw):
    try:
        return json.loads(raw) if raw else None
    except (json.JSONDecodeError, TypeError):
        return None


class AuditLog(db.Model):
    """
    Immutable audit trail for every requirement mutation.

    One row per action.  ``changes_json`` carries the new values supplied by
    the actor; ``previous_values_json`` the values they replaced (NULL for
    CREATE).

    ``requirement_id`` is deliberately not a foreign key: DELETE entries
    must outlive the requirement they describe.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("idx_audit_requirement", "requirement_id", "created_at"),
        db.Index("idx_audit_action", "action"),
    )

    id = db.Column(db.Integer, primary_key=True)
    requirement_id = db.Column(db.Integer, nullable=False)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Actor; NULL once the user row is gone",
    )
    action = db.Column(
        db.String(50), nullable=False,
        comment="CREATE | UPDATE | DELETE | STATUS_CHANGE | LOCK | UNLOCK",
    )

    # Change payload
    changes_json = db.Column(db.Text, nullable=False, default="{}")
    previous_values_json = db.Column(db.Text, nullable=True)

    # Timestamp (immutable)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    actor = db.relationship("User", lazy="joined")

    # ── Helpers ──────────────────────────────────────────────────────────

    @property
    def changes(self) -> dict:
        """Deserialise *changes_json* to a Python dict."""
        return _load(self.changes_json) or {}

    @property
    def previous_values(self) -> dict | None:
        return _load(self.previous_values_json)

    @property
    def user_name(self) -> str:
        """Actor display name: full_name, else email, else "Unknown"."""
        if self.actor is None:
            return "Unknown"
        return self.actor.full_name or self.actor.email or "Unknown"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requirementId": self.requirement_id,
            "userId": self.user_id,
            "action": self.action,
            "changes": self.changes,
            "previousValues": self.previous_values,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "userName": self.user_name,
            "userEmail": self.actor.email if self.actor else None,
        }

    def __repr__(self):
        return f"<AuditLog {self.id}: {self.action} on requirement/{self.requirement_id}>"


# ── Convenience writer ───────────────────────────────────────────────────────

def _strip_excluded(values: dict | None) -> dict | None:
    if values is None:
        return None
    return {k: v for k, v in values.items() if k not in EXCLUDED_AUDIT_KEYS}


def write_audit(
    *,
    requirement_id: int,
    action: str,
    user_id: int | None,
    changes: dict | None = None,
    previous_values: dict | None = None,
) -> AuditLog:
    """
    Append a single audit row.  Uses ``flush`` so callers keep
    transaction control.

    ``responseJson`` is stripped from both payloads before persisting.

    Returns the (flushed) AuditLog instance.
    """
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"Unknown audit action: {action}")

    previous = _strip_excluded(previous_values)
    log = AuditLog(
        requirement_id=int(requirement_id),
        user_id=user_id,
        action=action,
        changes_json=json.dumps(_strip_excluded(changes or {}), default=str),
        previous_values_json=json.dumps(previous, default=str) if previous is not None else None,
    )
    db.session.add(log)
    db.session.flush()
    return log
