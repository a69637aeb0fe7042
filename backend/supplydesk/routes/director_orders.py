# Overview: Flask API routes for director order review, status changes and shipping.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_company, require_role
from ..models import ROLE_DIRECTOR
from ..services import order_service
from ..services.order_service import InsufficientStockError
from ..services.tenant_service import TenantAccessError
from ..validation import ValidationError, json_object

director_orders_bp = Blueprint("director_orders", __name__, url_prefix="/api/director/orders")


@director_orders_bp.get("")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def list_orders_route():
    return jsonify(order_service.list_company_orders(company_id=g.company_id))


def _update_status(order_id, payload: dict):
    try:
        order = order_service.update_order_status(
            company_id=g.company_id,
            user_id=g.current_user.id,
            order_id=order_id,
            status=payload.get("status"),
            notes=payload.get("notes"),
        )
    except InsufficientStockError as e:
        return jsonify(e.to_dict()), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError:
        return jsonify({"error": "Order not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to update order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(order)


@director_orders_bp.patch("")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def update_order_route():
    """Body: orderId, status, notes?"""
    payload = json_object(request.get_json(silent=True))
    return _update_status(payload.get("orderId"), payload)


@director_orders_bp.get("/<int:order_id>")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def get_order_route(order_id: int):
    try:
        return jsonify(order_service.get_company_order(order_id=order_id, company_id=g.company_id))
    except TenantAccessError:
        return jsonify({"error": "Order not found"}), 404


@director_orders_bp.patch("/<int:order_id>")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def update_order_by_id_route(order_id: int):
    """Body: status, notes?"""
    payload = json_object(request.get_json(silent=True))
    return _update_status(order_id, payload)


@director_orders_bp.post("/<int:order_id>/ship")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def ship_order_route(order_id: int):
    """
    Ship an order: all-or-nothing stock check, OUT movements, alert refresh,
    and credit of the items to the ordering user's inventory.
    """
    payload = json_object(request.get_json(silent=True))
    try:
        result = order_service.ship_order(
            company_id=g.company_id,
            user_id=g.current_user.id,
            order_id=order_id,
            notes=payload.get("notes"),
        )
    except InsufficientStockError as e:
        return jsonify(e.to_dict()), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError:
        return jsonify({"error": "Order not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to ship order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result)
