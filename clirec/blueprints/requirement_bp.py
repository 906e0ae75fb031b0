"""
Requirement Blueprint — wizard submissions owned by the caller.

Endpoints:
    POST   /api/requirements                — create (201)
    GET    /api/requirements                — list own, newest first
    GET    /api/requirements/<id>           — get own (404 if not owned/missing)
    PUT    /api/requirements/<id>           — partial update (403 locked, 404 not owned)
    DELETE /api/requirements/<id>           — delete (403 locked, 404 not owned)
    GET    /api/requirements/download/<id>  — wizard payload as a .json attachment

Every route requires a bearer token. Ownership and lock rules are enforced
by the lifecycle service; this module only translates HTTP ↔ service calls.
"""

import logging

from flask import Blueprint, Response, jsonify

import clirec.services.requirement_lifecycle as lifecycle
from clirec.blueprints import json_body, register_error_handlers
from clirec.middleware.permission_required import current_actor, require_auth

logger = logging.getLogger(__name__)

requirement_bp = Blueprint("requirements", __name__, url_prefix="/api/requirements")
register_error_handlers(requirement_bp)


@requirement_bp.route("", methods=["POST"])
@require_auth
def create_requirement():
    """Body: {clientName, clientId, region, responseJson, status?}"""
    data = json_body()
    req = lifecycle.create_requirement(current_actor(), data)
    return jsonify(req.to_dict(include_owner=True)), 201


@requirement_bp.route("", methods=["GET"])
@require_auth
def list_my_requirements():
    reqs = lifecycle.list_my_requirements(current_actor())
    return jsonify([r.to_dict() for r in reqs]), 200


@requirement_bp.route("/<int:requirement_id>", methods=["GET"])
@require_auth
def get_requirement(requirement_id):
    req = lifecycle.get_requirement(current_actor(), requirement_id)
    return jsonify(req.to_dict(include_owner=True)), 200


@requirement_bp.route("/<int:requirement_id>", methods=["PUT"])
@require_auth
def update_requirement(requirement_id):
    """Only fields present and non-null in the body are applied."""
    data = json_body()
    req = lifecycle.update_requirement(current_actor(), requirement_id, data)
    return jsonify(req.to_dict(include_owner=True)), 200


@requirement_bp.route("/<int:requirement_id>", methods=["DELETE"])
@require_auth
def delete_requirement(requirement_id):
    rid = lifecycle.delete_requirement(current_actor(), requirement_id)
    return jsonify({"message": "Requirement deleted", "id": rid}), 200


@requirement_bp.route("/download/<int:requirement_id>", methods=["GET"])
@require_auth
def download_requirement(requirement_id):
    filename, body = lifecycle.download_requirement(current_actor(), requirement_id)
    return Response(
        body,
        mimetype="application/json",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
