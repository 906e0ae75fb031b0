"""
Audit Service — best-effort recording and history retrieval.

Recording runs as the second step of every requirement mutation, after the
primary change is committed.  A failure here is logged and swallowed: the
mutation has already succeeded and is never rolled back because of it.

Usage:
    from clirec.services.audit_service import record_audit, get_audit_history

    record_audit(
        requirement_id=req.id,
        user_id=actor.id,
        action=ACTION_STATUS_CHANGE,
        changes={"status": "Approved"},
        previous_values={"status": "Submitted"},
    )
"""

import logging

from sqlalchemy import select

from clirec.models import db
from clirec.models.audit import AuditLog, write_audit

logger = logging.getLogger(__name__)


def record_audit(
    *,
    requirement_id: int,
    user_id: int | None,
    action: str,
    changes: dict | None = None,
    previous_values: dict | None = None,
) -> AuditLog | None:
    """
    Append and commit one audit entry.

    Returns the AuditLog row, or None when the write failed.
    """
    try:
        log = write_audit(
            requirement_id=requirement_id,
            user_id=user_id,
            action=action,
            changes=changes,
            previous_values=previous_values,
        )
        db.session.commit()
        return log
    except Exception:
        db.session.rollback()
        logger.exception(
            "Failed to write audit log action=%s requirement=%s user=%s",
            action, requirement_id, user_id,
        )
        return None


def get_audit_history(requirement_id: int) -> list[AuditLog]:
    """All audit entries for a requirement, newest first."""
    stmt = (
        select(AuditLog)
        .where(AuditLog.requirement_id == requirement_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    )
    return list(db.session.scalars(stmt).unique())
