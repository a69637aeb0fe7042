# Overview: Flask API routes for director stock levels, movements and alerts.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_company, require_role
from ..models import ROLE_DIRECTOR
from ..services import stock_service
from ..services.tenant_service import TenantAccessError
from ..validation import ValidationError, json_object

director_stock_bp = Blueprint("director_stock", __name__, url_prefix="/api/director")


@director_stock_bp.get("/stock")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def list_stock_route():
    """?alerts=true limits the list to products at or below their minimum."""
    alerts_only = request.args.get("alerts", "").lower() == "true"
    return jsonify(stock_service.list_stock(company_id=g.company_id, alerts_only=alerts_only))


@director_stock_bp.post("/stock")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def stock_movement_route():
    """Body: productId, quantity, movementType (IN | OUT | ADJUSTMENT), notes?"""
    payload = json_object(request.get_json(silent=True))
    try:
        result = stock_service.adjust_stock(
            company_id=g.company_id,
            user_id=g.current_user.id,
            product_id=payload.get("productId"),
            quantity=payload.get("quantity"),
            movement_type=payload.get("movementType"),
            notes=payload.get("notes"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(result)


@director_stock_bp.get("/stock/<int:product_id>/movements")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def list_movements_route(product_id: int):
    try:
        return jsonify(stock_service.list_movements(company_id=g.company_id, product_id=product_id))
    except TenantAccessError:
        return jsonify({"error": "Product not found"}), 404


@director_stock_bp.get("/stock-alerts")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def stock_alerts_route():
    alerts = stock_service.compute_stock_alerts(company_id=g.company_id)
    return jsonify({"alerts": alerts, "count": len(alerts)})


@director_stock_bp.patch("/stock-alerts/<int:alert_id>")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def resolve_alert_route(alert_id: int):
    try:
        return jsonify(stock_service.resolve_alert(alert_id=alert_id, company_id=g.company_id))
    except TenantAccessError:
        return jsonify({"error": "Stock alert not found"}), 404
