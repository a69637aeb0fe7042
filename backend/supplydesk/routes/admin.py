# Overview: Flask API routes for system administration (companies); ADMIN only.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..models import ROLE_ADMIN
from ..services import company_service
from ..services.tenant_service import TenantAccessError
from ..validation import ConflictError, ValidationError, json_object, require_fields

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.get("/companies")
@require_auth
@require_role(ROLE_ADMIN)
def list_companies_route():
    """All companies with their users and product/order counts."""
    return jsonify(company_service.list_companies())


@admin_bp.post("/companies")
@require_auth
@require_role(ROLE_ADMIN)
def create_company_route():
    """
    Create a company together with its COMPANY_DIRECTOR account.

    Body: companyName, companyEmail, companyPhone?, companyAddress?,
    directorName, directorEmail, directorPassword
    """
    payload = json_object(request.get_json(silent=True))

    try:
        require_fields(
            payload, "companyName", "companyEmail", "directorName", "directorEmail", "directorPassword"
        )
        created = company_service.create_company_with_director(
            company_name=payload["companyName"],
            company_email=payload["companyEmail"],
            company_phone=payload.get("companyPhone"),
            company_address=payload.get("companyAddress"),
            director_name=payload["directorName"],
            director_email=payload["directorEmail"],
            director_password=payload["directorPassword"],
        )
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create company")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(created), 201


@admin_bp.put("/companies/<int:company_id>")
@require_auth
@require_role(ROLE_ADMIN)
def update_company_route(company_id: int):
    payload = json_object(request.get_json(silent=True))
    try:
        updated = company_service.update_company(company_id=company_id, payload=payload)
    except TenantAccessError:
        return jsonify({"error": "Company not found"}), 404
    except (ValidationError, ConflictError) as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(updated)


@admin_bp.delete("/companies/<int:company_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_company_route(company_id: int):
    try:
        company_service.delete_company(company_id=company_id)
    except TenantAccessError:
        return jsonify({"error": "Company not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to delete company %s", company_id)
        return jsonify({"error": "Internal server error"}), 500
    return jsonify({"message": "Company deleted successfully"})
