"""
Platform-wide exception hierarchy.

Services raise these types; blueprints register handlers against them once
and get consistent HTTP status codes everywhere.

Usage:
    from clirec.core.exceptions import ForbiddenError, NotFoundError, ValidationError

    raise NotFoundError(resource="Requirement", resource_id=42)
    raise ForbiddenError("Requirement is locked and cannot be modified")
    raise ValidationError("clientName is required", details={"clientName": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist within the caller's scope.

    Security note: Used for BOTH genuinely missing records AND records owned
    by another user. A 403 would confirm the resource exists; a 404 does not.

    Args:
        resource: Human-readable model/entity name (e.g. "Requirement").
        resource_id: The PK that was looked up. Included in logs, not in HTTP response.
        owner_id: Optional — the ownership scope that was enforced. For debug logging only.
    """

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        owner_id: int | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.owner_id = owner_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        if owner_id is not None:
            msg += f" (owner={owner_id})"
        super().__init__(msg)

    @property
    def public_message(self) -> str:
        return f"{self.resource} not found"


class ForbiddenError(Exception):
    """Raised when the caller is identified but may not perform the operation.

    Covers locked records (owner edits after an Admin lock) and role
    failures (a User asking for an Admin-only operation).

    Args:
        message: Human-readable explanation, returned verbatim to the caller.
        reason: Machine-readable reason, e.g. "locked" or "role".
    """

    def __init__(self, message: str, reason: str = "role") -> None:
        self.reason = reason
        super().__init__(message)


class ValidationError(Exception):
    """Raised when input fails validation in the service layer.

    Maps to HTTP 400 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
                 Keys are field names; values are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would violate a unique constraint.

    Maps to HTTP 400 on the registration endpoint ("User already exists").

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value (logged, not returned).
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)
