# Overview: Flask API routes for director product management, restocking and thresholds.

"""
Product routes for COMPANY_DIRECTOR sessions.

Every lookup is filtered by g.company_id: a product ID from another company
answers 404 exactly like a missing one, and nothing is changed.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_company, require_role
from ..models import ROLE_DIRECTOR
from ..services import products_service, stock_service
from ..services.tenant_service import TenantAccessError
from ..validation import ConflictError, ValidationError, json_object

director_products_bp = Blueprint("director_products", __name__, url_prefix="/api/director/products")


@director_products_bp.get("")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def list_products_route():
    return jsonify(products_service.list_company_products(company_id=g.company_id))


@director_products_bp.post("")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def create_product_route():
    """
    Create a product. Required: name, sku, price, quantity.
    minStock defaults to DEFAULT_MIN_STOCK; an alert opens if quantity <= minStock.
    """
    payload = json_object(request.get_json(silent=True))
    try:
        created = products_service.create_product(
            payload=payload, company_id=g.company_id, user_id=g.current_user.id
        )
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(created), 201


@director_products_bp.get("/analytics")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def product_analytics_route():
    return jsonify(products_service.product_analytics(company_id=g.company_id))


@director_products_bp.patch("/restock")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def restock_by_body_route():
    """Body: productId, quantity (positive integer), notes?"""
    payload = json_object(request.get_json(silent=True))
    try:
        result = stock_service.restock_product(
            company_id=g.company_id,
            user_id=g.current_user.id,
            product_id=payload.get("productId"),
            quantity=payload.get("quantity"),
            notes=payload.get("notes"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(result)


@director_products_bp.patch("/thresholds")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def thresholds_route():
    """Body: productId, minThreshold (>= 0), maxThreshold? (> minThreshold)"""
    payload = json_object(request.get_json(silent=True))
    try:
        product = stock_service.set_thresholds(
            company_id=g.company_id,
            product_id=payload.get("productId"),
            min_threshold=payload.get("minThreshold"),
            max_threshold=payload.get("maxThreshold"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(product)


@director_products_bp.get("/<int:product_id>")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def get_product_route(product_id: int):
    try:
        return jsonify(products_service.get_product(product_id=product_id, company_id=g.company_id))
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404


@director_products_bp.put("/<int:product_id>")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def update_product_route(product_id: int):
    payload = json_object(request.get_json(silent=True))
    try:
        updated = products_service.update_product(
            product_id=product_id, company_id=g.company_id, payload=payload
        )
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(updated)


@director_products_bp.delete("/<int:product_id>")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id=product_id, company_id=g.company_id)
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404
    return jsonify({"ok": True})


@director_products_bp.patch("/<int:product_id>/restock")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def restock_route(product_id: int):
    """Body: quantity (positive integer), notes?"""
    payload = json_object(request.get_json(silent=True))
    try:
        result = stock_service.restock_product(
            company_id=g.company_id,
            user_id=g.current_user.id,
            product_id=product_id,
            quantity=payload.get("quantity"),
            notes=payload.get("notes"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to restock product %s", product_id)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result)
