"""
Requirement Authorization Policy

Decides, per operation and per (actor, record), whether an operation on an
AccountRequirement is permitted.

Rules, in precedence order:
  1. Admin → read, update, delete, status_change, lock, unlock, audit_read
     regardless of ownership or lock state.
  2. User  → create always; read only own records; update/delete only own
     AND unlocked records; status_change/lock/unlock/audit_read never.
  3. A record hidden by the ownership filter is indistinguishable from a
     missing one.

``check_access`` turns a denial into the typed error the HTTP layer maps:
ownership → NotFoundError (404), lock or role → ForbiddenError (403).

Usage:
    from clirec.services.permission import Actor, check_access, can_access

    actor = Actor(id=g.jwt_user_id, role=g.jwt_role)
    if can_access(actor, req, OP_UPDATE):
        ...
    check_access(actor, req, OP_DELETE)   # raises
"""

import logging
from dataclasses import dataclass

from clirec.core.exceptions import ForbiddenError, NotFoundError
from clirec.models.auth import ROLE_ADMIN, ROLE_USER

logger = logging.getLogger(__name__)

OP_READ = "read"
OP_CREATE = "create"
OP_UPDATE = "update"
OP_DELETE = "delete"
OP_STATUS_CHANGE = "status_change"
OP_LOCK = "lock"
OP_UNLOCK = "unlock"
OP_AUDIT_READ = "audit_read"

OPERATIONS = frozenset({
    OP_READ, OP_CREATE, OP_UPDATE, OP_DELETE,
    OP_STATUS_CHANGE, OP_LOCK, OP_UNLOCK, OP_AUDIT_READ,
})

# Operations a User may perform on a record they own.
_OWNER_OPERATIONS = frozenset({OP_READ, OP_UPDATE, OP_DELETE})

# Owner operations additionally blocked while the record is locked.
_LOCK_GUARDED = frozenset({OP_UPDATE, OP_DELETE})

# Admin-only operations.
ADMIN_OPERATIONS = frozenset({OP_STATUS_CHANGE, OP_LOCK, OP_UNLOCK, OP_AUDIT_READ})

LOCKED_MESSAGE = "Requirement is locked and cannot be modified"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller: user id + role, taken from the bearer token."""

    id: int
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=user.role)


def _check_operation(operation: str) -> None:
    if operation not in OPERATIONS:
        raise ValueError(f"Unknown operation: {operation}")


def is_owner(actor: Actor, record) -> bool:
    return record is not None and record.user_id == actor.id


def can_access(actor: Actor, record, operation: str) -> bool:
    """
    Pure decision function.

    Args:
        actor: Authenticated caller.
        record: AccountRequirement (or None when the lookup found nothing;
                ignored for ``create``).
        operation: One of OPERATIONS.

    Returns:
        True if the operation is permitted.
    """
    _check_operation(operation)

    if operation == OP_CREATE:
        return True

    if actor.is_admin:
        return record is not None

    if operation in ADMIN_OPERATIONS:
        return False

    if not is_owner(actor, record):
        return False

    if operation in _LOCK_GUARDED and record.is_locked:
        return False

    return operation in _OWNER_OPERATIONS


def check_access(actor: Actor, record, operation: str, *, record_id=None) -> None:
    """
    Assert the actor may perform ``operation`` on ``record``.

    Raises:
        ForbiddenError: wrong role for an Admin-only operation, or the
            owner hit a locked record (reason="locked").
        NotFoundError: record missing or owned by someone else.
    """
    if can_access(actor, record, operation):
        return

    rid = record_id if record_id is not None else getattr(record, "id", None)

    if operation in ADMIN_OPERATIONS and not actor.is_admin:
        logger.warning("User %s denied '%s' on requirement %s: admin only",
                       actor.id, operation, rid)
        raise ForbiddenError("Admin access required", reason="role")

    if record is None or not is_owner(actor, record):
        # Ownership failure is reported as not-found to avoid leaking existence.
        raise NotFoundError(resource="Requirement", resource_id=rid, owner_id=actor.id)

    if operation in _LOCK_GUARDED and record.is_locked:
        logger.warning("User %s denied '%s' on locked requirement %s",
                       actor.id, operation, rid)
        raise ForbiddenError(LOCKED_MESSAGE, reason="locked")

    raise ForbiddenError(f"Operation '{operation}' not permitted", reason="role")
