# Overview: Service-layer operations for company stock: restock, thresholds, movements and alerts.

"""
Stock Service

Every change to Product.quantity goes through this module and appends a
StockMovement row (previous_stock -> new_stock). Persisted StockAlert rows
follow the product's stock level: an alert opens when quantity drops to or
below min_stock and resolves once stock is back above it.

Restocking increments quantity with a single UPDATE ... SET quantity =
quantity + :n so concurrent restocks never lose an increment.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, StockMovement, StockAlert, RestockRecord
from ..models.inventory import (
    MOVEMENT_IN,
    MOVEMENT_OUT,
    MOVEMENT_ADJUSTMENT,
    MOVEMENT_TYPES,
    REFERENCE_MANUAL,
    REFERENCE_RESTOCK,
    ALERT_OUT_OF_STOCK,
    ALERT_LOW_STOCK,
)
from ..validation import (
    MAX_INT,
    ValidationError,
    parse_int,
    parse_non_negative_int,
    parse_positive_int,
)
from .tenant_service import require_product_in_company, require_alert_in_company
from supplydesk.time_utils import utcnow, to_utc_z

SEVERITY_ORDER = {"CRITICAL": 0, "HIGH": 1, "MEDIUM": 2, "LOW": 3}


def _increased_stock(product: Product, qty: int) -> int:
    new_stock = product.quantity + qty
    if new_stock > MAX_INT:
        raise ValidationError("quantity is out of range")
    return new_stock


# =============================================================================
# ALERTS
# =============================================================================


def _open_alerts_query(product_id: int):
    return db.session.query(StockAlert).filter(
        StockAlert.product_id == product_id,
        StockAlert.is_resolved.is_(False),
    )


def resolve_open_alerts(product: Product) -> int:
    return _open_alerts_query(product.id).update(
        {StockAlert.is_resolved: True, StockAlert.resolved_at: utcnow()},
        synchronize_session=False,
    )


def _alert_text(product: Product) -> tuple[str, str]:
    if product.quantity <= 0:
        return ALERT_OUT_OF_STOCK, f"{product.name} is out of stock"
    return (
        ALERT_LOW_STOCK,
        f"{product.name} is running low ({product.quantity} left, minimum {product.min_stock})",
    )


def sync_stock_alerts(product: Product) -> StockAlert | None:
    """
    Bring persisted alerts in line with the product's current stock.

    Returns the open alert for the product, if any. Does not commit.
    """
    if product.quantity > product.min_stock:
        resolve_open_alerts(product)
        return None

    alert_type, message = _alert_text(product)

    existing = _open_alerts_query(product.id).first()
    if existing is not None:
        # A low-stock alert escalates to out-of-stock in place, and back again
        existing.alert_type = alert_type
        existing.message = message
        existing.current_stock = product.quantity
        existing.threshold_value = product.min_stock
        return existing

    alert = StockAlert(
        product_id=product.id,
        company_id=product.company_id,
        alert_type=alert_type,
        message=message,
        current_stock=product.quantity,
        threshold_value=product.min_stock,
    )
    db.session.add(alert)
    return alert


def _alert_severity(quantity: int, min_threshold: int) -> str:
    if quantity <= min_threshold * 0.3:
        return "CRITICAL"
    if quantity <= min_threshold * 0.5:
        return "HIGH"
    return "MEDIUM"


def compute_stock_alerts(*, company_id: int) -> list[dict]:
    """
    Threshold report over the company's active products.

    - quantity <= 0            -> OUT_OF_STOCK, CRITICAL
    - quantity <= min          -> LOW_STOCK, CRITICAL (<=30% of min) / HIGH (<=50%) / MEDIUM
    - quantity >= max          -> OVERSTOCK, MEDIUM
    Products without thresholds use DEFAULT_MIN_STOCK / DEFAULT_MAX_STOCK.
    """
    default_min = current_app.config.get("DEFAULT_MIN_STOCK", 10)
    default_max = current_app.config.get("DEFAULT_MAX_STOCK", 1000)

    products = (
        db.session.query(Product)
        .filter(Product.company_id == company_id, Product.is_active.is_(True))
        .order_by(Product.name.asc())
        .all()
    )
    open_alerts = {
        a.product_id: a.id
        for a in db.session.query(StockAlert).filter(
            StockAlert.company_id == company_id,
            StockAlert.is_resolved.is_(False),
        )
    }

    now = to_utc_z(utcnow())
    alerts = []
    for product in products:
        min_threshold = product.min_stock if product.min_stock is not None else default_min
        max_threshold = product.max_stock if product.max_stock is not None else default_max
        qty = product.quantity

        if qty <= 0:
            alert_type, severity = "OUT_OF_STOCK", "CRITICAL"
            message = f"{product.name} is out of stock"
        elif qty <= min_threshold:
            alert_type, severity = "LOW_STOCK", _alert_severity(qty, min_threshold)
            message = f"{product.name} is low on stock ({qty} remaining, minimum {min_threshold})"
        elif qty >= max_threshold:
            alert_type, severity = "OVERSTOCK", "MEDIUM"
            message = f"{product.name} is overstocked ({qty} units, maximum {max_threshold})"
        else:
            continue

        alerts.append({
            "productId": product.id,
            "productName": product.name,
            "sku": product.sku,
            "category": product.category.name if product.category else None,
            "currentStock": qty,
            "minThreshold": min_threshold,
            "maxThreshold": max_threshold,
            "alertType": alert_type,
            "severity": severity,
            "message": message,
            "alertId": open_alerts.get(product.id),
            "createdAt": now,
        })

    alerts.sort(key=lambda a: SEVERITY_ORDER[a["severity"]])
    return alerts


def resolve_alert(*, alert_id: int, company_id: int) -> dict:
    alert = require_alert_in_company(alert_id, company_id)
    if not alert.is_resolved:
        alert.is_resolved = True
        alert.resolved_at = utcnow()
        db.session.commit()
    return alert.to_dict()


# =============================================================================
# MOVEMENTS
# =============================================================================


def record_movement(
    product: Product,
    *,
    movement_type: str,
    quantity: int,
    new_stock: int,
    user_id: int | None,
    reference_type: str = REFERENCE_MANUAL,
    reference_id: int | None = None,
    notes: str | None = None,
) -> StockMovement:
    """Set product stock to new_stock and append the movement. Does not commit."""
    movement = StockMovement(
        product_id=product.id,
        company_id=product.company_id,
        created_by_id=user_id,
        movement_type=movement_type,
        quantity=quantity,
        previous_stock=product.quantity,
        new_stock=new_stock,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
    )
    product.quantity = new_stock
    product.last_stock_update = utcnow()
    db.session.add(movement)
    return movement


def adjust_stock(
    *,
    company_id: int,
    user_id: int,
    product_id,
    quantity,
    movement_type: str,
    notes: str | None = None,
) -> dict:
    """
    Manual stock movement.

    IN adds, OUT subtracts (floored at 0), ADJUSTMENT sets the absolute level.
    """
    if product_id is None or quantity is None or not movement_type:
        raise ValidationError("productId, quantity and movementType are required")
    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError(f"movementType must be one of: {', '.join(MOVEMENT_TYPES)}")

    if movement_type == MOVEMENT_ADJUSTMENT:
        qty = parse_non_negative_int(quantity, "quantity")
    else:
        qty = parse_positive_int(quantity, "quantity")

    product = require_product_in_company(parse_int(product_id, "productId"), company_id)

    if movement_type == MOVEMENT_IN:
        new_stock = _increased_stock(product, qty)
    elif movement_type == MOVEMENT_OUT:
        new_stock = max(0, product.quantity - qty)
    else:
        new_stock = qty

    movement = record_movement(
        product,
        movement_type=movement_type,
        quantity=qty,
        new_stock=new_stock,
        user_id=user_id,
        notes=notes,
    )
    sync_stock_alerts(product)
    db.session.commit()

    return {"product": product.to_dict(), "movement": movement.to_dict()}


def restock_product(
    *,
    company_id: int,
    user_id: int,
    product_id,
    quantity,
    notes: str | None = None,
) -> dict:
    """
    Add quantity units to a company product.

    Validation happens before anything is read or written: a non-positive
    quantity leaves the product untouched.
    """
    qty = parse_positive_int(quantity, "quantity")
    if product_id is None:
        raise ValidationError("productId is required")
    product = require_product_in_company(parse_int(product_id, "productId"), company_id)
    _increased_stock(product, qty)

    now = utcnow()
    db.session.query(Product).filter(
        Product.id == product.id,
        Product.company_id == company_id,
    ).update(
        {
            Product.quantity: Product.quantity + qty,
            Product.last_stock_update: now,
        },
        synchronize_session=False,
    )
    db.session.refresh(product)

    new_stock = product.quantity
    movement = StockMovement(
        product_id=product.id,
        company_id=company_id,
        created_by_id=user_id,
        movement_type=MOVEMENT_IN,
        quantity=qty,
        previous_stock=new_stock - qty,
        new_stock=new_stock,
        reference_type=REFERENCE_RESTOCK,
        notes=notes,
    )
    db.session.add(movement)
    db.session.flush()

    record = RestockRecord(
        product_id=product.id,
        company_id=company_id,
        user_id=user_id,
        quantity=qty,
        notes=notes,
    )
    db.session.add(record)
    db.session.flush()
    movement.reference_id = record.id

    sync_stock_alerts(product)
    db.session.commit()

    return {
        "message": f"Successfully restocked {qty} units",
        "product": product.to_dict(),
        "restockRecord": record.to_dict(),
    }


def set_thresholds(*, company_id: int, product_id, min_threshold, max_threshold=None) -> dict:
    """
    Set min/max stock thresholds.

    minThreshold must be >= 0; maxThreshold, when given, must exceed it.
    """
    if product_id is None or min_threshold is None or min_threshold == "":
        raise ValidationError("Product ID and minimum threshold are required")

    min_value = parse_int(min_threshold, "minThreshold")
    max_value = None
    if max_threshold is not None and max_threshold != "":
        max_value = parse_int(max_threshold, "maxThreshold")

    if min_value < 0 or (max_value is not None and max_value <= min_value):
        raise ValidationError("Invalid threshold values")

    product = require_product_in_company(parse_int(product_id, "productId"), company_id)
    product.min_stock = min_value
    product.max_stock = max_value
    sync_stock_alerts(product)
    db.session.commit()

    return product.to_dict()


# =============================================================================
# READS
# =============================================================================


def list_stock(*, company_id: int, alerts_only: bool = False) -> list[dict]:
    query = db.session.query(Product).filter(
        Product.company_id == company_id,
        Product.is_active.is_(True),
    )
    if alerts_only:
        query = query.filter(Product.quantity <= Product.min_stock)
        products = query.order_by(Product.quantity.asc(), Product.name.asc()).all()
        return [
            {**p.to_dict(), "stockStatus": p.stock_status}
            for p in products
        ]

    products = query.order_by(Product.name.asc()).all()
    result = []
    for p in products:
        movements = (
            db.session.query(StockMovement)
            .filter(StockMovement.product_id == p.id)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(5)
            .all()
        )
        alerts = _open_alerts_query(p.id).order_by(StockAlert.created_at.desc()).all()
        result.append({
            **p.to_dict(),
            "stockStatus": p.stock_status,
            "stockMovements": [m.to_dict() for m in movements],
            "stockAlerts": [a.to_dict() for a in alerts],
        })
    return result


def list_movements(*, company_id: int, product_id: int, limit: int = 50) -> list[dict]:
    product = require_product_in_company(product_id, company_id)
    movements = (
        db.session.query(StockMovement)
        .filter(StockMovement.product_id == product.id)
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .limit(limit)
        .all()
    )
    return [m.to_dict() for m in movements]
