# Overview: Flask API routes for product categories.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_role
from ..models import ROLE_ADMIN, ROLE_DIRECTOR
from ..services import category_service
from ..validation import ConflictError, ValidationError, json_object

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    return jsonify(category_service.list_categories())


@categories_bp.post("")
@require_auth
@require_role(ROLE_ADMIN, ROLE_DIRECTOR)
def create_category_route():
    """Create a category. Names are unique; a duplicate is rejected with 400."""
    payload = json_object(request.get_json(silent=True))
    try:
        created = category_service.create_category(
            name=payload.get("name"),
            description=payload.get("description"),
            company_id=g.company_id,
        )
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(created), 201
