# Overview: Service-layer operations for order requests: creation, status changes and shipping.

"""
Order Service

Users request stock from their company with an order (status PENDING, no
stock is reserved). Directors move orders through the lifecycle; shipping is
the only transition that touches stock:

1. every item is checked against company stock (all-or-nothing)
2. stock is deducted with an OUT movement referencing the order
3. stock alerts are re-evaluated for each product
4. the items are credited to the ordering user's inventory
"""

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import OrderRequest, OrderRequestItem, Product
from ..models.inventory import MOVEMENT_OUT, REFERENCE_ORDER
from ..models.orders import (
    DIRECTOR_SETTABLE_STATUSES,
    STATUS_CANCELLED,
    STATUS_DELIVERED,
    STATUS_PENDING,
    STATUS_REJECTED,
    STATUS_SHIPPED,
    STATUS_TIMESTAMP_FIELDS,
)
from ..validation import NotFoundError, ValidationError, parse_int, parse_positive_int
from .inventory_service import credit_user_inventory
from .stock_service import record_movement, sync_stock_alerts
from .tenant_service import require_order_in_company
from supplydesk.time_utils import utcnow


class InsufficientStockError(ValidationError):
    """Stock check failed; carries per-item details for the 400 body."""

    def __init__(self, message: str, out_of_stock_items: list[dict], all_items: list[dict] | None = None):
        super().__init__(message)
        self.out_of_stock_items = out_of_stock_items
        self.all_items = all_items

    def to_dict(self) -> dict:
        body = {"error": str(self), "outOfStockItems": self.out_of_stock_items}
        if self.all_items is not None:
            body["allItems"] = self.all_items
        return body


def _parse_items(raw_items) -> list[tuple[int, int]]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("Order must contain at least one item")
    parsed = []
    for raw in raw_items:
        if not isinstance(raw, dict) or raw.get("productId") is None:
            raise ValidationError("Each item requires productId and quantity")
        parsed.append((
            parse_int(raw["productId"], "productId"),
            parse_positive_int(raw.get("quantity"), "quantity"),
        ))
    return parsed


def create_order(*, user, items, notes: str | None = None) -> dict:
    """
    Create a PENDING order for the calling user.

    Products must belong to the user's company. Requested quantities are
    checked against current stock but nothing is reserved.
    """
    if user.company_id is None:
        raise ValidationError("User is not associated with a company")

    parsed = _parse_items(items)

    products: dict[int, Product] = {}
    requested: dict[int, int] = {}
    for product_id, qty in parsed:
        product = products.get(product_id)
        if product is None:
            product = db.session.query(Product).filter(
                Product.id == product_id,
                Product.company_id == user.company_id,
                Product.is_active.is_(True),
            ).first()
            if product is None:
                raise NotFoundError(f"Product {product_id} not found")
            products[product_id] = product
        requested[product_id] = requested.get(product_id, 0) + qty

    out_of_stock = [
        {
            "productId": pid,
            "productName": products[pid].name,
            "requested": qty,
            "available": products[pid].quantity,
        }
        for pid, qty in requested.items()
        if products[pid].quantity < qty
    ]
    if out_of_stock:
        raise InsufficientStockError("Insufficient stock for some items", out_of_stock)

    order = OrderRequest(
        user_id=user.id,
        company_id=user.company_id,
        status=STATUS_PENDING,
        notes=notes,
    )
    total = Decimal("0")
    for product_id, qty in parsed:
        product = products[product_id]
        line_total = product.price * qty
        total += line_total
        order.items.append(OrderRequestItem(
            product_id=product_id,
            quantity=qty,
            unit_price=product.price,
            total_price=line_total,
        ))
    order.total_amount = total

    db.session.add(order)
    db.session.commit()
    return order.to_dict()


def list_user_orders(*, user_id: int) -> list[dict]:
    orders = (
        db.session.query(OrderRequest)
        .filter(OrderRequest.user_id == user_id)
        .order_by(OrderRequest.created_at.desc(), OrderRequest.id.desc())
        .all()
    )
    return [o.to_dict() for o in orders]


def get_user_order(*, order_id: int, user_id: int) -> dict:
    order = db.session.get(OrderRequest, order_id)
    if order is None or order.user_id != user_id:
        raise NotFoundError("Order not found")
    return order.to_dict(include_user=True)


def list_company_orders(*, company_id: int) -> list[dict]:
    orders = (
        db.session.query(OrderRequest)
        .filter(OrderRequest.company_id == company_id)
        .order_by(OrderRequest.created_at.desc(), OrderRequest.id.desc())
        .all()
    )
    return [o.to_dict(include_user=True) for o in orders]


def get_company_order(*, order_id: int, company_id: int) -> dict:
    return require_order_in_company(order_id, company_id).to_dict(include_user=True)


def update_order_status(*, company_id: int, user_id: int, order_id, status, notes=None) -> dict:
    """
    Director status change. SHIPPED runs the full shipping procedure; other
    statuses just stamp their *_at timestamp.
    """
    if order_id is None or not status:
        raise ValidationError("orderId and status are required")
    if status not in DIRECTOR_SETTABLE_STATUSES:
        raise ValidationError("Invalid status")

    order = require_order_in_company(parse_int(order_id, "orderId"), company_id)

    if status == STATUS_SHIPPED and order.status != STATUS_SHIPPED:
        return ship_order(company_id=company_id, user_id=user_id, order_id=order.id, notes=notes)["order"]

    # Re-sending SHIPPED only updates the notes; stock and shipped_at stay as they are
    if order.status != status:
        order.status = status
        timestamp_field = STATUS_TIMESTAMP_FIELDS.get(status)
        if timestamp_field:
            setattr(order, timestamp_field, utcnow())
    if notes is not None:
        order.notes = notes
    db.session.commit()
    return order.to_dict(include_user=True)


def ship_order(*, company_id: int, user_id: int, order_id: int, notes=None) -> dict:
    order = require_order_in_company(order_id, company_id)

    if order.status in (STATUS_SHIPPED, STATUS_DELIVERED):
        raise ValidationError("Order has already been shipped")
    if order.status == STATUS_CANCELLED:
        raise ValidationError("Cannot ship a cancelled order")
    if order.status == STATUS_REJECTED:
        raise ValidationError("Cannot ship a rejected order")

    required: dict[int, int] = {}
    for item in order.items:
        required[item.product_id] = required.get(item.product_id, 0) + item.quantity

    all_items = []
    for item in order.items:
        product = item.product
        all_items.append({
            "productId": product.id,
            "productName": product.name,
            "sku": product.sku,
            "requested": item.quantity,
            "available": product.quantity,
            "sufficient": product.quantity >= required[product.id],
        })
    out_of_stock = [i for i in all_items if not i["sufficient"]]
    if out_of_stock:
        raise InsufficientStockError("Insufficient stock to ship this order", out_of_stock, all_items)

    movements = []
    for item in order.items:
        product = item.product
        movements.append(record_movement(
            product,
            movement_type=MOVEMENT_OUT,
            quantity=item.quantity,
            new_stock=max(0, product.quantity - item.quantity),
            user_id=user_id,
            reference_type=REFERENCE_ORDER,
            reference_id=order.id,
            notes=f"Shipped for order #{order.id}",
        ))
        sync_stock_alerts(product)

    order.status = STATUS_SHIPPED
    order.shipped_at = utcnow()
    if notes is not None:
        order.notes = notes

    credit_user_inventory(order)
    db.session.commit()

    return {
        "success": True,
        "message": f"Order #{order.id} shipped",
        "order": order.to_dict(include_user=True),
        "stockMovements": [m.to_dict() for m in movements],
    }
