# Overview: Flask API routes for director finance views and reports.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_company, require_role
from ..models import ROLE_DIRECTOR
from ..services import balance_service, finance_service, reporting_service
from ..services.tenant_service import TenantAccessError
from ..validation import ValidationError, json_object

director_reports_bp = Blueprint("director_reports", __name__, url_prefix="/api/director")


@director_reports_bp.get("/balances")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def balances_route():
    """Outstanding balance per USER member plus company totals."""
    return jsonify(balance_service.company_balances(company_id=g.company_id))


@director_reports_bp.get("/credit")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def credit_overview_route():
    return jsonify(finance_service.credit_overview(company_id=g.company_id))


@director_reports_bp.post("/credit")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def set_credit_route():
    """Body: userId, creditLimit, description?"""
    payload = json_object(request.get_json(silent=True))
    try:
        result = finance_service.set_credit_limit(company_id=g.company_id, payload=payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except TenantAccessError:
        return jsonify({"error": "User not found"}), 404
    return jsonify(result)


@director_reports_bp.get("/payments")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def payments_route():
    return jsonify(finance_service.list_company_payments(company_id=g.company_id))


@director_reports_bp.get("/expenses")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def expenses_route():
    return jsonify(finance_service.list_company_expenses(company_id=g.company_id))


@director_reports_bp.get("/dashboard")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def dashboard_route():
    return jsonify(reporting_service.director_dashboard(company_id=g.company_id))


@director_reports_bp.get("/performance")
@require_auth
@require_role(ROLE_DIRECTOR)
@require_company
def performance_route():
    """?period=3months | 6months | 12months (default 6months)"""
    try:
        report = reporting_service.performance_report(
            company_id=g.company_id, period=request.args.get("period")
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(report)
