"""
Permission Decorators — JWT-aware role decorators for route protection.

Usage:
    @bp.route("/api/requirements", methods=["GET"])
    @require_auth
    def list_requirements():
        actor = current_actor()
        ...

    @bp.route("/api/admin/requirements", methods=["GET"])
    @require_admin
    def list_all():
        ...

Record-level rules (ownership, lock) live in ``services.permission``;
these decorators only establish who the caller is and their role.
"""

import functools
import logging

from flask import g

from clirec.models.auth import ROLE_ADMIN, ROLES
from clirec.services.permission import Actor
from clirec.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def current_actor() -> Actor | None:
    """The Actor for the current request, or None when unauthenticated."""
    user_id = getattr(g, "jwt_user_id", None)
    role = getattr(g, "jwt_role", None)
    if user_id is None or role not in ROLES:
        return None
    return Actor(id=user_id, role=role)


def require_auth(f):
    """Decorator: require a valid bearer token (any role)."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if current_actor() is None:
            return api_error(E.UNAUTHORIZED, "Authentication required")
        return f(*args, **kwargs)
    return decorated


def require_admin(f):
    """Decorator: require a valid bearer token with role Admin."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        actor = current_actor()
        if actor is None:
            return api_error(E.UNAUTHORIZED, "Authentication required")
        if actor.role != ROLE_ADMIN:
            logger.warning(
                "User %d denied: admin role required on %s",
                actor.id, f.__name__,
            )
            return api_error(E.FORBIDDEN, "Admin access required")
        return f(*args, **kwargs)
    return decorated
