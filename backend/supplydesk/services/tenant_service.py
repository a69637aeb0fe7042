"""
Tenant scoping helpers.

Every director-facing query must be scoped to the caller's company. These
helpers load an entity by ID *and* company; anything that exists under a
different company is reported exactly like a missing row (TenantAccessError,
mapped to 404 by the routes) so IDs from other tenants reveal nothing.

USAGE:
    from supplydesk.services.tenant_service import require_product_in_company

    product = require_product_in_company(product_id, g.company_id)
"""

from __future__ import annotations

from flask import g

from ..extensions import db
from ..models import Product, User, OrderRequest, StockAlert, Customer, ROLE_USER
from .security_service import log_security_event


class TenantAccessError(Exception):
    """Raised when an entity is missing or owned by another company."""
    pass


def get_current_company_id() -> int:
    """
    Current tenant's company_id from the Flask g context.

    Raises TenantAccessError if the session carries no company.
    """
    company_id = getattr(g, "company_id", None)
    if company_id is None:
        raise TenantAccessError("Tenant context not established")
    return company_id


def _log_cross_tenant_attempt(resource: str, entity_id, company_id: int, owner_company_id) -> None:
    user = getattr(g, "current_user", None)
    user_id = user.id if user is not None else None
    # The request fails with a 404: nothing it staged may ride along with the audit commit
    db.session.rollback()
    log_security_event(
        user_id=user_id,
        event_type="CROSS_TENANT_ACCESS_DENIED",
        success=False,
        reason=f"{resource} {entity_id} belongs to company {owner_company_id}",
        company_id=company_id,
    )


def _require_owned(model, entity_id, company_id: int, resource: str):
    if entity_id is None:
        raise TenantAccessError(f"{resource} not found")
    entity = db.session.get(model, entity_id)
    if entity is None:
        raise TenantAccessError(f"{resource} not found")
    if entity.company_id != company_id:
        _log_cross_tenant_attempt(resource, entity_id, company_id, entity.company_id)
        raise TenantAccessError(f"{resource} not found")
    return entity


def require_product_in_company(product_id: int, company_id: int, *, active_only: bool = False) -> Product:
    product = _require_owned(Product, product_id, company_id, "Product")
    if active_only and not product.is_active:
        raise TenantAccessError("Product not found")
    return product


def require_order_in_company(order_id: int, company_id: int) -> OrderRequest:
    return _require_owned(OrderRequest, order_id, company_id, "Order")


def require_alert_in_company(alert_id: int, company_id: int) -> StockAlert:
    return _require_owned(StockAlert, alert_id, company_id, "Stock alert")


def require_member_in_company(user_id: int, company_id: int, *, role: str | None = ROLE_USER) -> User:
    """A user of the company, optionally restricted to one role (USER by default)."""
    member = _require_owned(User, user_id, company_id, "User")
    if role is not None and member.role != role:
        raise TenantAccessError("User not found")
    return member


def require_customer_of_user(customer_id: int, user_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id) if customer_id is not None else None
    if customer is None or customer.user_id != user_id:
        raise TenantAccessError("Customer not found")
    return customer
