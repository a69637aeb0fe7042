# Overview: Flask API routes for a signed-in user's balance, payments, credit and expenses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import balance_service, finance_service
from ..validation import ValidationError, json_object

user_finance_bp = Blueprint("user_finance", __name__, url_prefix="/api/user")


@user_finance_bp.get("/balance")
@require_auth
def balance_route():
    """
    Outstanding balance = max(0, approved order totals - payments),
    recomputed on every request.
    """
    return jsonify(balance_service.user_balance(g.current_user))


@user_finance_bp.get("/payments")
@require_auth
def list_payments_route():
    return jsonify(finance_service.list_user_payments(user_id=g.current_user.id))


@user_finance_bp.post("/payments")
@require_auth
def create_payment_route():
    """Body: amount (> 0), description, paymentDate, receiptUrl?"""
    payload = json_object(request.get_json(silent=True))
    try:
        payment = finance_service.create_payment(user=g.current_user, payload=payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record payment")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(payment), 201


@user_finance_bp.post("/credit-payment")
@require_auth
def credit_payment_route():
    """Body: amount (> 0), paymentDate?, description?, receiptUrl?"""
    payload = json_object(request.get_json(silent=True))
    try:
        result = finance_service.create_credit_payment(user=g.current_user, payload=payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(result), 201


@user_finance_bp.get("/expenses")
@require_auth
def list_expenses_route():
    return jsonify(finance_service.list_user_expenses(user_id=g.current_user.id))


@user_finance_bp.post("/expenses")
@require_auth
def create_expense_route():
    """Body: amount (> 0), description, category?, expenseDate?, receiptUrl?"""
    payload = json_object(request.get_json(silent=True))
    try:
        expense = finance_service.create_expense(user=g.current_user, payload=payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(expense), 201
