# Overview: Flask API routes for a signed-in user's orders and orderable products.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import order_service, products_service
from ..services.order_service import InsufficientStockError
from ..validation import NotFoundError, ValidationError, json_object

user_orders_bp = Blueprint("user_orders", __name__, url_prefix="/api/user")


@user_orders_bp.get("/products")
@require_auth
def list_products_route():
    """Active, in-stock products of the caller's company, by name."""
    return jsonify(products_service.list_orderable_products(company_id=g.company_id))


@user_orders_bp.get("/orders")
@require_auth
def list_orders_route():
    return jsonify(order_service.list_user_orders(user_id=g.current_user.id))


@user_orders_bp.post("/orders")
@require_auth
def create_order_route():
    """
    Body: items [{productId, quantity}], notes?

    Creates a PENDING order priced from current product prices. Stock is
    checked but not reserved.
    """
    payload = json_object(request.get_json(silent=True))
    try:
        order = order_service.create_order(
            user=g.current_user,
            items=payload.get("items"),
            notes=payload.get("notes"),
        )
    except InsufficientStockError as e:
        return jsonify(e.to_dict()), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(order), 201


@user_orders_bp.get("/orders/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        return jsonify(order_service.get_user_order(order_id=order_id, user_id=g.current_user.id))
    except NotFoundError:
        return jsonify({"error": "Order not found"}), 404
