# Overview: Flask API routes for a user's own inventory and the customers they sell to.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..services import customer_service, inventory_service
from ..services.tenant_service import TenantAccessError
from ..validation import NotFoundError, ValidationError, json_object

user_customers_bp = Blueprint("user_customers", __name__, url_prefix="/api/user")


@user_customers_bp.get("/inventory")
@require_auth
def inventory_route():
    return jsonify(inventory_service.list_user_inventory(user_id=g.current_user.id))


@user_customers_bp.post("/inventory/populate")
@require_auth
def populate_inventory_route():
    """Rebuild inventory for every user of the caller's company from shipped orders."""
    try:
        return jsonify(inventory_service.populate_company_inventory(company_id=g.company_id))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@user_customers_bp.get("/customers")
@require_auth
def list_customers_route():
    return jsonify(customer_service.list_customers(user_id=g.current_user.id))


@user_customers_bp.post("/customers")
@require_auth
def create_customer_route():
    payload = json_object(request.get_json(silent=True))
    try:
        customer = customer_service.create_customer(user=g.current_user, payload=payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(customer), 201


@user_customers_bp.get("/customers/<int:customer_id>/orders")
@require_auth
def list_customer_orders_route(customer_id: int):
    try:
        return jsonify(customer_service.list_customer_orders(
            user_id=g.current_user.id, customer_id=customer_id
        ))
    except TenantAccessError:
        return jsonify({"error": "Customer not found"}), 404


@user_customers_bp.post("/customers/<int:customer_id>/orders")
@require_auth
def create_customer_order_route(customer_id: int):
    """Body: productId, quantity, unitPrice?, notes? (drawn from the user's inventory)"""
    payload = json_object(request.get_json(silent=True))
    try:
        result = customer_service.create_customer_order(
            user=g.current_user, customer_id=customer_id, payload=payload
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError:
        return jsonify({"error": "Customer not found"}), 404
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(result), 201


@user_customers_bp.get("/customers/<int:customer_id>/payments")
@require_auth
def list_customer_payments_route(customer_id: int):
    try:
        return jsonify(customer_service.list_customer_payments(
            user_id=g.current_user.id, customer_id=customer_id
        ))
    except TenantAccessError:
        return jsonify({"error": "Customer not found"}), 404


@user_customers_bp.post("/customers/<int:customer_id>/payments")
@require_auth
def create_customer_payment_route(customer_id: int):
    """Body: amount (> 0, at most the outstanding balance), description?, paymentDate?"""
    payload = json_object(request.get_json(silent=True))
    try:
        result = customer_service.create_customer_payment(
            user=g.current_user, customer_id=customer_id, payload=payload
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify(result), 201
