"""
Auth Blueprint — JWT authentication endpoints.

  POST /api/auth/register    — Email + password + full name → User account + JWT
  POST /api/auth/login       — Email + password → JWT
  GET  /api/auth/me          — Current user profile
"""

import logging

from flask import Blueprint, g, jsonify

from clirec.blueprints import json_body, register_error_handlers
from clirec.core.exceptions import ValidationError
from clirec.middleware.permission_required import require_auth
from clirec.services.jwt_service import token_response
from clirec.services.user_service import authenticate_user, get_user_by_id, register_user
from clirec.utils.errors import E, api_error

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")
register_error_handlers(auth_bp)


def _string_field(data, *names):
    """First present value among ``names``; must be a string when given."""
    for name in names:
        value = data.get(name)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ValidationError(f"{name} must be a string", details={name: "invalid"})
        return value
    return ""


# ═══════════════════════════════════════════════════════════════
# POST /api/auth/register
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/register", methods=["POST"])
def register():
    """
    Self-registration; the new account always has role User.

    Body: { "email": "...", "password": "...", "fullName": "..." }
    """
    data = json_body()
    email = _string_field(data, "email").strip()
    password = _string_field(data, "password")
    full_name = _string_field(data, "fullName", "full_name")

    if not email or not password:
        return api_error(E.VALIDATION_REQUIRED, "Email and password are required")

    user = register_user(email, password, full_name)

    body = token_response(user)
    body["message"] = "Registration successful"
    return jsonify(body), 201


# ═══════════════════════════════════════════════════════════════
# POST /api/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate with email + password, return an access token.

    Body: { "email": "...", "password": "..." }
    """
    data = json_body()
    email = _string_field(data, "email").strip()
    password = _string_field(data, "password")

    if not email or not password:
        return api_error(E.VALIDATION_REQUIRED, "Email and password are required")

    user = authenticate_user(email, password)
    if not user:
        return api_error(E.VALIDATION_INVALID, "Invalid credentials")

    body = token_response(user)
    body["message"] = "Login successful"
    return jsonify(body), 200


# ═══════════════════════════════════════════════════════════════
# GET /api/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    user = get_user_by_id(g.jwt_user_id)
    if not user:
        return api_error(E.NOT_FOUND, "User not found")
    return jsonify(user.to_dict()), 200
