"""
Admin Blueprint — reviewer operations on every requirement.

API Endpoints (JSON):
  GET  /api/admin/requirements                 — List all (with owner email/name)
  GET  /api/admin/requirements/<id>            — Get, bypassing ownership
  PUT  /api/admin/requirements/<id>            — Update, bypassing ownership and lock
  PUT  /api/admin/requirements/<id>/status     — Change status tag
  PUT  /api/admin/requirements/<id>/lock       — Lock against owner edits
  PUT  /api/admin/requirements/<id>/unlock     — Unlock
  GET  /api/admin/requirements/<id>/audit      — Audit history, newest first

All admin endpoints require a JWT with role Admin (401 without a token,
403 with a User token).
"""

import logging

from flask import Blueprint, jsonify

import clirec.services.requirement_lifecycle as lifecycle
from clirec.blueprints import json_body, register_error_handlers
from clirec.middleware.permission_required import current_actor, require_admin
from clirec.utils.errors import E, api_error

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")
register_error_handlers(admin_bp)


# ═══════════════════════════════════════════════════════════════
# API: Requirement review
# ═══════════════════════════════════════════════════════════════

@admin_bp.route("/requirements", methods=["GET"])
@require_admin
def list_all_requirements():
    reqs = lifecycle.list_all_requirements(current_actor())
    return jsonify([r.to_dict(include_owner=True) for r in reqs]), 200


@admin_bp.route("/requirements/<int:requirement_id>", methods=["GET"])
@require_admin
def get_requirement(requirement_id):
    req = lifecycle.get_requirement(current_actor(), requirement_id)
    return jsonify(req.to_dict(include_owner=True)), 200


@admin_bp.route("/requirements/<int:requirement_id>", methods=["PUT"])
@require_admin
def update_requirement(requirement_id):
    """Partial update regardless of owner or lock; audited with adminEdit."""
    data = json_body()
    req = lifecycle.update_requirement(current_actor(), requirement_id, data)
    return jsonify(req.to_dict(include_owner=True)), 200


@admin_bp.route("/requirements/<int:requirement_id>/status", methods=["PUT"])
@require_admin
def update_status(requirement_id):
    """Body: {"status": "Draft" | "Submitted" | "Approved" | "Rejected"}"""
    data = json_body()
    status = data.get("status")
    if not status:
        return api_error(E.VALIDATION_REQUIRED, "status is required")
    req = lifecycle.change_status(current_actor(), requirement_id, status)
    return jsonify(req.to_dict(include_owner=True)), 200


@admin_bp.route("/requirements/<int:requirement_id>/lock", methods=["PUT"])
@require_admin
def lock_requirement(requirement_id):
    req = lifecycle.lock_requirement(current_actor(), requirement_id)
    return jsonify(req.to_dict(include_owner=True)), 200


@admin_bp.route("/requirements/<int:requirement_id>/unlock", methods=["PUT"])
@require_admin
def unlock_requirement(requirement_id):
    req = lifecycle.unlock_requirement(current_actor(), requirement_id)
    return jsonify(req.to_dict(include_owner=True)), 200


@admin_bp.route("/requirements/<int:requirement_id>/audit", methods=["GET"])
@require_admin
def get_audit_history(requirement_id):
    entries = lifecycle.get_requirement_audit_history(current_actor(), requirement_id)
    return jsonify(entries), 200
