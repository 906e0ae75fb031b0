"""
Requirement Lifecycle Service

Orchestrates every read and mutation of AccountRequirement:
  - Ownership-scoped lookup (Admins bypass the scope)
  - Authorization gate (services.permission)
  - Mutation + commit
  - Best-effort audit entry (services.audit_service)

Each mutating operation follows the same order:
    authorize → mutate → commit → audit → return

Audit failures never propagate: the mutation is already committed when the
audit entry is appended.

Usage:
    from clirec.services.requirement_lifecycle import update_requirement

    req = update_requirement(actor, requirement_id=5, data={"status": "Submitted"})
"""

import json
import logging

from sqlalchemy import select
from werkzeug.utils import secure_filename

from clirec.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from clirec.models import db
from clirec.models.audit import (
    ACTION_CREATE,
    ACTION_DELETE,
    ACTION_LOCK,
    ACTION_STATUS_CHANGE,
    ACTION_UNLOCK,
    ACTION_UPDATE,
)
from clirec.models.requirement import (
    EDITABLE_FIELDS,
    REQUIREMENT_STATUSES,
    STATUS_DRAFT,
    AccountRequirement,
)
from clirec.services.audit_service import get_audit_history, record_audit
from clirec.services.permission import (
    OP_AUDIT_READ,
    OP_CREATE,
    OP_DELETE,
    OP_LOCK,
    OP_READ,
    OP_STATUS_CHANGE,
    OP_UNLOCK,
    OP_UPDATE,
    Actor,
    check_access,
)

logger = logging.getLogger(__name__)

# Required on create; must be non-empty strings.
REQUIRED_CREATE_FIELDS = ("clientName", "clientId", "region")


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════


def _fetch_scoped(actor: Actor, requirement_id: int) -> AccountRequirement | None:
    """Load a requirement, filtered by owner unless the actor is Admin."""
    stmt = select(AccountRequirement).where(AccountRequirement.id == requirement_id)
    if not actor.is_admin:
        stmt = stmt.where(AccountRequirement.user_id == actor.id)
    return db.session.scalars(stmt).first()


def _get_authorized(actor: Actor, requirement_id: int, operation: str) -> AccountRequirement:
    req = _fetch_scoped(actor, requirement_id)
    check_access(actor, req, operation, record_id=requirement_id)
    return req


def _coerce_response_json(value) -> str:
    """Wizard payload arrives as a JSON string or an already-parsed object."""
    if value is None:
        return "{}"
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    raise ValidationError("responseJson must be a JSON string or object",
                          details={"responseJson": "invalid"})


def _validate_status(status) -> str:
    if status not in REQUIREMENT_STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(REQUIREMENT_STATUSES)}",
            details={"status": "invalid"},
        )
    return status


def _clean_fields(data: dict) -> dict:
    """
    Keep only editable fields that were supplied with a non-null value.

    Returns {wire_name: value} with responseJson serialized and status
    validated. Required fields may be omitted but never blanked.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    cleaned = {}
    for wire in EDITABLE_FIELDS:
        if wire not in data or data[wire] is None:
            continue
        value = data[wire]
        if wire == "responseJson":
            value = _coerce_response_json(value)
        elif not isinstance(value, str):
            raise ValidationError(f"{wire} must be a string", details={wire: "invalid"})
        else:
            value = value.strip()
            if not value and wire in REQUIRED_CREATE_FIELDS:
                raise ValidationError(f"{wire} cannot be blank", details={wire: "required"})
        if wire == "status":
            _validate_status(value)
        cleaned[wire] = value
    return cleaned


# ═══════════════════════════════════════════════════════════════════════════
# Reads
# ═══════════════════════════════════════════════════════════════════════════


def get_requirement(actor: Actor, requirement_id: int) -> AccountRequirement:
    """Ownership-scoped read (Admins see everything). Not audited."""
    return _get_authorized(actor, requirement_id, OP_READ)


def list_my_requirements(actor: Actor) -> list[AccountRequirement]:
    """The actor's own requirements, newest first."""
    stmt = (
        select(AccountRequirement)
        .where(AccountRequirement.user_id == actor.id)
        .order_by(AccountRequirement.created_at.desc(), AccountRequirement.id.desc())
    )
    return list(db.session.scalars(stmt))


def list_all_requirements(actor: Actor) -> list[AccountRequirement]:
    """Every requirement, newest first. Admin only."""
    if not actor.is_admin:
        raise ForbiddenError("Admin access required", reason="role")
    stmt = (
        select(AccountRequirement)
        .order_by(AccountRequirement.created_at.desc(), AccountRequirement.id.desc())
    )
    return list(db.session.scalars(stmt))


def download_requirement(actor: Actor, requirement_id: int) -> tuple[str, str]:
    """
    Return ``(filename, response_json)`` for the wizard payload download.

    Filename: ``requirement_<clientId>_<id>.json``.
    """
    req = _get_authorized(actor, requirement_id, OP_READ)
    filename = secure_filename(f"requirement_{req.client_id}_{req.id}.json") or f"requirement_{req.id}.json"
    return filename, req.response_json or "{}"


# ═══════════════════════════════════════════════════════════════════════════
# Mutations
# ═══════════════════════════════════════════════════════════════════════════


def create_requirement(actor: Actor, data: dict) -> AccountRequirement:
    """
    Create a requirement owned by the actor.

    Args:
        actor: Authenticated caller (any role).
        data: {clientName, clientId, region, responseJson?, status?}

    Returns:
        The persisted AccountRequirement.

    Raises:
        ValidationError: a required field is missing/blank or status is invalid.
    """
    check_access(actor, None, OP_CREATE)
    fields = _clean_fields(data)

    missing = [f for f in REQUIRED_CREATE_FIELDS if not fields.get(f)]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={f: "required" for f in missing},
        )

    req = AccountRequirement(
        user_id=actor.id,
        client_name=fields["clientName"],
        client_id=fields["clientId"],
        region=fields["region"],
        response_json=fields.get("responseJson", "{}"),
        status=fields.get("status") or STATUS_DRAFT,
        is_locked=False,
    )
    db.session.add(req)
    db.session.commit()
    logger.info("Requirement %s created by user %s", req.id, actor.id)

    record_audit(
        requirement_id=req.id,
        user_id=actor.id,
        action=ACTION_CREATE,
        changes={
            "clientName": req.client_name,
            "clientId": req.client_id,
            "region": req.region,
            "status": req.status,
        },
        previous_values=None,
    )
    return req


def update_requirement(actor: Actor, requirement_id: int, data: dict) -> AccountRequirement:
    """
    Partial update: only fields present AND non-null are applied.

    Users may update only their own unlocked requirements; Admins may update
    any requirement, locked or not (audited with ``adminEdit: true``).

    Raises:
        NotFoundError: missing or not owned.
        ForbiddenError: owner editing a locked requirement (no audit entry).
        ValidationError: malformed field values.
    """
    req = _get_authorized(actor, requirement_id, OP_UPDATE)
    fields = _clean_fields(data)

    previous = req.audit_snapshot()
    for wire, value in fields.items():
        setattr(req, EDITABLE_FIELDS[wire], value)
    req.touch()
    db.session.commit()
    logger.info("Requirement %s updated by %s %s (fields=%s)",
                req.id, actor.role, actor.id, sorted(fields))

    changes = dict(fields)
    if actor.is_admin:
        changes["adminEdit"] = True
    record_audit(
        requirement_id=req.id,
        user_id=actor.id,
        action=ACTION_UPDATE,
        changes=changes,
        previous_values=previous,
    )
    return req


def delete_requirement(actor: Actor, requirement_id: int) -> int:
    """
    Delete a requirement. Same gating as update.

    Returns the deleted requirement id.
    """
    req = _get_authorized(actor, requirement_id, OP_DELETE)
    rid = req.id
    previous = req.audit_snapshot()

    db.session.delete(req)
    db.session.commit()
    logger.info("Requirement %s deleted by %s %s", rid, actor.role, actor.id)

    record_audit(
        requirement_id=rid,
        user_id=actor.id,
        action=ACTION_DELETE,
        changes={"deleted": True},
        previous_values=previous,
    )
    return rid


def change_status(actor: Actor, requirement_id: int, new_status) -> AccountRequirement:
    """
    Set the status tag. Admin only; no ownership filter, no transition graph.
    """
    req = _get_authorized(actor, requirement_id, OP_STATUS_CHANGE)
    _validate_status(new_status)

    previous_status = req.status
    req.status = new_status
    req.touch()
    db.session.commit()
    logger.info("Requirement %s status %s → %s by admin %s",
                req.id, previous_status, new_status, actor.id)

    record_audit(
        requirement_id=req.id,
        user_id=actor.id,
        action=ACTION_STATUS_CHANGE,
        changes={"status": new_status},
        previous_values={"status": previous_status},
    )
    return req


def _set_lock(actor: Actor, requirement_id: int, locked: bool) -> AccountRequirement:
    operation = OP_LOCK if locked else OP_UNLOCK
    req = _get_authorized(actor, requirement_id, operation)

    req.is_locked = locked
    req.touch()
    db.session.commit()
    logger.info("Requirement %s %s by admin %s",
                req.id, "locked" if locked else "unlocked", actor.id)

    record_audit(
        requirement_id=req.id,
        user_id=actor.id,
        action=ACTION_LOCK if locked else ACTION_UNLOCK,
        changes={"isLocked": locked},
        previous_values={"isLocked": not locked},
    )
    return req


def lock_requirement(actor: Actor, requirement_id: int) -> AccountRequirement:
    """Block owner edits/deletes. Admin only."""
    return _set_lock(actor, requirement_id, True)


def unlock_requirement(actor: Actor, requirement_id: int) -> AccountRequirement:
    """Re-allow owner edits/deletes. Admin only."""
    return _set_lock(actor, requirement_id, False)


# ═══════════════════════════════════════════════════════════════════════════
# Audit history
# ═══════════════════════════════════════════════════════════════════════════


def get_requirement_audit_history(actor: Actor, requirement_id: int) -> list[dict]:
    """
    Audit entries for a requirement, newest first, with resolved userName.

    Admin only. History of a deleted requirement stays readable.
    """
    if not actor.is_admin:
        check_access(actor, None, OP_AUDIT_READ, record_id=requirement_id)
    entries = get_audit_history(requirement_id)
    if not entries and db.session.get(AccountRequirement, requirement_id) is None:
        raise NotFoundError(resource="Requirement", resource_id=requirement_id)
    return [e.to_dict() for e in entries]
