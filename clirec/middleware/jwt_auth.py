"""
JWT Auth Middleware — Parses JWT from Authorization header, sets g.jwt_*.

  Authorization: Bearer <token>  →  g.jwt_user_id, g.jwt_role, g.jwt_email

A missing, expired or invalid token leaves the context empty; the route
decorators in ``permission_required`` decide whether that is a 401.
"""

import logging

import jwt as pyjwt
from flask import g, request

from clirec.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/health",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        # Clear JWT context
        g.jwt_user_id = None
        g.jwt_role = None
        g.jwt_email = None

        path = request.path
        if not path.startswith("/api/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]  # Strip "Bearer "

        try:
            payload = decode_access_token(token)
            g.jwt_user_id = int(payload["sub"])
            g.jwt_role = payload.get("role")
            g.jwt_email = payload.get("email")
        except pyjwt.ExpiredSignatureError:
            logger.debug("Expired JWT on %s", path)
        except (pyjwt.InvalidTokenError, KeyError, TypeError, ValueError):
            logger.debug("Invalid JWT on %s", path)
