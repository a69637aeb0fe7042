# Overview: Service-layer operations for companies (admin only).

from __future__ import annotations

from ..extensions import db
from ..models import Company, Product, OrderRequest, ROLE_DIRECTOR
from ..validation import ConflictError, ModelValidationPolicy, parse_text, validate_payload
from . import auth_service, maintenance_service
from .tenant_service import TenantAccessError

COMPANY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "address", "description"},
    required_on_create={"name"},
)


def _company_detail(company: Company, product_count: int, order_count: int) -> dict:
    data = company.to_dict()
    data["users"] = [
        {
            "id": u.id,
            "name": u.name,
            "email": u.email,
            "role": u.role,
            "isActive": u.is_active,
        }
        for u in company.users
    ]
    data["_count"] = {"products": product_count, "orderRequests": order_count}
    return data


def _count_by_company(model) -> dict[int, int]:
    rows = (
        db.session.query(model.company_id, db.func.count(model.id))
        .group_by(model.company_id)
        .all()
    )
    return {company_id: count for company_id, count in rows}


def list_companies() -> list[dict]:
    companies = db.session.query(Company).order_by(Company.created_at.desc(), Company.id.desc()).all()
    products = _count_by_company(Product)
    orders = _count_by_company(OrderRequest)
    return [
        _company_detail(c, products.get(c.id, 0), orders.get(c.id, 0))
        for c in companies
    ]


def _ensure_company_unique(*, name: str | None, email: str | None, exclude_id: int | None = None) -> None:
    query = db.session.query(Company.id)
    if exclude_id is not None:
        query = query.filter(Company.id != exclude_id)
    if email and query.filter(Company.email == email).first():
        raise ConflictError("Company with this email already exists")
    if name and query.filter(Company.name == name).first():
        raise ConflictError("Company with this name already exists")


def create_company_with_director(
    *,
    company_name: str,
    company_email: str,
    company_phone: str | None,
    company_address: str | None,
    director_name: str,
    director_email: str,
    director_password: str,
) -> dict:
    """
    Create a company and its COMPANY_DIRECTOR in one unit of work.

    Raises ConflictError if the company email/name or the director email is taken.
    """
    auth_service.validate_password_strength(director_password)
    company_name = parse_text(company_name, "companyName")
    company_email = auth_service.normalize_email(company_email)
    _ensure_company_unique(name=company_name, email=company_email)
    if auth_service.email_in_use(director_email):
        raise ConflictError("Director email already exists")

    company = Company(
        name=company_name,
        email=company_email,
        phone=company_phone,
        address=company_address,
    )
    db.session.add(company)
    db.session.flush()

    director = auth_service.create_user(
        name=director_name,
        email=director_email,
        password=director_password,
        role=ROLE_DIRECTOR,
        company_id=company.id,
        commit=False,
    )
    db.session.commit()

    return {"company": company.to_dict(), "director": director.to_dict()}


def update_company(*, company_id: int, payload: dict) -> dict:
    company = db.session.get(Company, company_id)
    if company is None:
        raise TenantAccessError("Company not found")

    patch = validate_payload(model=Company, payload=payload, policy=COMPANY_POLICY, partial=True)
    if patch.get("email"):
        patch["email"] = auth_service.normalize_email(patch["email"])
    _ensure_company_unique(name=patch.get("name"), email=patch.get("email"), exclude_id=company.id)

    for key, value in patch.items():
        setattr(company, key, value)
    db.session.commit()
    return company.to_dict()


def delete_company(*, company_id: int) -> bool:
    company = db.session.get(Company, company_id)
    if company is None:
        raise TenantAccessError("Company not found")
    maintenance_service.purge_company(company)
    db.session.commit()
    return True
