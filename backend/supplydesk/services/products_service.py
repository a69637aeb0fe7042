# backend/supplydesk/services/products_service.py
"""
Products Service

All product operations are scoped to the caller's company. Stock levels are
not writable here; they change through stock_service so every change is
logged as a movement.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, Category, OrderRequest, OrderRequestItem, CustomerOrder, StockAlert
from ..models.orders import SALES_STATUSES
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from .stock_service import sync_stock_alerts
from .tenant_service import require_product_in_company

PRODUCT_ALIASES = {"minStock": "min_stock", "maxStock": "max_stock", "categoryId": "category_id"}

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sku", "price", "quantity", "description", "minStock", "maxStock", "categoryId"},
    required_on_create={"name", "sku", "price", "quantity"},
    aliases=PRODUCT_ALIASES,
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sku", "price", "description", "minStock", "maxStock", "categoryId"},
    aliases=PRODUCT_ALIASES,
)


def _ensure_category(category_id: int | None) -> None:
    if category_id is None:
        return
    if db.session.get(Category, category_id) is None:
        raise ValidationError("Category not found")


def _ensure_sku_unique(company_id: int, sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product.id).filter(
        Product.company_id == company_id,
        Product.sku == sku,
    )
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("Product with this SKU already exists")


def _sold_quantities(company_id: int) -> dict[int, int]:
    rows = (
        db.session.query(OrderRequestItem.product_id, db.func.sum(OrderRequestItem.quantity))
        .join(OrderRequest, OrderRequest.id == OrderRequestItem.order_request_id)
        .filter(
            OrderRequest.company_id == company_id,
            OrderRequest.status.in_(SALES_STATUSES),
        )
        .group_by(OrderRequestItem.product_id)
        .all()
    )
    return {product_id: int(total or 0) for product_id, total in rows}


def list_company_products(*, company_id: int) -> list[dict]:
    """Active products with sales totals, stock status and open alerts."""
    products = (
        db.session.query(Product)
        .filter(Product.company_id == company_id, Product.is_active.is_(True))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )
    sold = _sold_quantities(company_id)

    items = []
    for p in products:
        alerts = [a for a in p.stock_alerts if not a.is_resolved]
        items.append({
            **p.to_dict(),
            "createdBy": p.created_by.to_summary() if p.created_by else None,
            "_count": {
                "orderItems": len(p.order_items),
                "customerOrders": len(p.customer_orders),
            },
            "stockAlerts": [a.to_dict() for a in alerts],
            "totalSales": sold.get(p.id, 0),
            "stockStatus": p.stock_status,
            "hasActiveAlerts": bool(alerts),
        })
    return items


def create_product(*, payload: dict, company_id: int, user_id: int) -> dict:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
    if patch.get("min_stock") is None:
        patch["min_stock"] = current_app.config.get("DEFAULT_MIN_STOCK", 10)
    enforce_rules_product(patch)
    _ensure_category(patch.get("category_id"))
    _ensure_sku_unique(company_id, patch["sku"])

    product = Product(company_id=company_id, created_by_id=user_id, **patch)
    db.session.add(product)
    db.session.flush()

    sync_stock_alerts(product)
    db.session.commit()
    return product.to_dict()


def get_product(*, product_id: int, company_id: int) -> dict:
    product = require_product_in_company(product_id, company_id)
    data = product.to_dict()
    data["stockStatus"] = product.stock_status
    data["stockAlerts"] = [a.to_dict() for a in product.stock_alerts if not a.is_resolved]
    return data


def update_product(*, product_id: int, company_id: int, payload: dict) -> dict:
    product = require_product_in_company(product_id, company_id)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)

    merged = {
        "min_stock": patch.get("min_stock", product.min_stock),
        "max_stock": patch.get("max_stock", product.max_stock),
    }
    enforce_rules_product(merged)
    _ensure_category(patch.get("category_id"))
    if "sku" in patch:
        _ensure_sku_unique(company_id, patch["sku"], exclude_id=product.id)

    for key, value in patch.items():
        setattr(product, key, value)

    if "min_stock" in patch:
        sync_stock_alerts(product)
    db.session.commit()
    return product.to_dict()


def delete_product(*, product_id: int, company_id: int) -> bool:
    """Soft delete: order history keeps referencing the row."""
    product = require_product_in_company(product_id, company_id)
    product.is_active = False
    db.session.query(StockAlert).filter(
        StockAlert.product_id == product.id,
        StockAlert.is_resolved.is_(False),
    ).delete(synchronize_session=False)
    db.session.commit()
    return True


def list_orderable_products(*, company_id: int | None) -> list[dict]:
    """Products a user may order: active, in stock, in their company."""
    if company_id is None:
        return []
    products = (
        db.session.query(Product)
        .filter(
            Product.company_id == company_id,
            Product.is_active.is_(True),
            Product.quantity > 0,
        )
        .order_by(Product.name.asc())
        .all()
    )
    return [p.to_dict() for p in products]


def product_analytics(*, company_id: int) -> dict:
    """
    Sales per product: items of approved/shipped/delivered orders plus
    credit sales made by users to their own customers.
    """
    order_rows = (
        db.session.query(
            OrderRequestItem.product_id,
            db.func.sum(OrderRequestItem.quantity),
            db.func.sum(OrderRequestItem.total_price),
            db.func.count(OrderRequestItem.id),
        )
        .join(OrderRequest, OrderRequest.id == OrderRequestItem.order_request_id)
        .filter(
            OrderRequest.company_id == company_id,
            OrderRequest.status.in_(SALES_STATUSES),
        )
        .group_by(OrderRequestItem.product_id)
        .all()
    )
    credit_rows = (
        db.session.query(
            CustomerOrder.product_id,
            db.func.sum(CustomerOrder.quantity),
            db.func.sum(CustomerOrder.total_amount),
            db.func.count(CustomerOrder.id),
        )
        .join(Product, Product.id == CustomerOrder.product_id)
        .filter(Product.company_id == company_id)
        .group_by(CustomerOrder.product_id)
        .all()
    )

    product_ids = {row[0] for row in order_rows} | {row[0] for row in credit_rows}
    products = {
        p.id: p
        for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    } if product_ids else {}

    def _rows(rows):
        out = []
        for product_id, qty, revenue, count in rows:
            product = products.get(product_id)
            out.append({
                "productId": product_id,
                "product": product.to_summary() if product else None,
                "totalQuantity": int(qty or 0),
                "totalRevenue": float(revenue or 0),
                "orderCount": int(count or 0),
            })
        out.sort(key=lambda r: r["totalRevenue"], reverse=True)
        return out

    sales = _rows(order_rows)
    credit_sales = _rows(credit_rows)

    return {
        "productSales": sales,
        "creditSales": credit_sales,
        "summary": {
            "totalProducts": len(product_ids),
            "totalRevenue": round(sum(r["totalRevenue"] for r in sales), 2),
            "totalQuantitySold": sum(r["totalQuantity"] for r in sales),
            "creditRevenue": round(sum(r["totalRevenue"] for r in credit_sales), 2),
        },
    }
