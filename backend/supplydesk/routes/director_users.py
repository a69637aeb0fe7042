# Overview: Flask API routes for a director managing their company's USER accounts.

"""
All routes are scoped to g.company_id. Users of other companies, and
directors/admins of the same company, are reported as 404.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_company, require_role
from ..models import ROLE_DIRECTOR
from ..services import customer_service, user_service
from ..services.tenant_service import TenantAccessError
from ..validation import ConflictError, ValidationError, json_object

director_users_bp = Blueprint("director_users", __name__, url_prefix="/api/director/users")


@director_users_bp.get("")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def list_users_route():
    return jsonify(user_service.list_members(company_id=g.company_id))


@director_users_bp.post("")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def create_user_route():
    payload = json_object(request.get_json(silent=True))
    try:
        created = user_service.create_member(company_id=g.company_id, payload=payload)
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(created), 201


@director_users_bp.put("/<int:user_id>")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def update_user_route(user_id: int):
    payload = json_object(request.get_json(silent=True))
    try:
        updated = user_service.update_member(company_id=g.company_id, member_id=user_id, payload=payload)
    except TenantAccessError:
        return jsonify({"error": "User not found"}), 404
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(updated)


@director_users_bp.delete("/<int:user_id>")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def delete_user_route(user_id: int):
    try:
        user_service.delete_member(company_id=g.company_id, member_id=user_id)
    except TenantAccessError:
        return jsonify({"error": "User not found"}), 404
    return jsonify({"message": "User deleted successfully"})


@director_users_bp.get("/<int:user_id>/customer-debts")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def customer_debts_route(user_id: int):
    try:
        return jsonify(customer_service.customer_debts(company_id=g.company_id, member_id=user_id))
    except TenantAccessError:
        return jsonify({"error": "User not found"}), 404
