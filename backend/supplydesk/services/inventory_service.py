# Overview: Service-layer operations for per-user inventory received through shipped orders.

from __future__ import annotations

from ..extensions import db
from ..models import OrderRequest, OrderRequestItem, User, UserInventory
from ..models.orders import STATUS_SHIPPED
from ..validation import ValidationError
from supplydesk.time_utils import utcnow


def credit_user_inventory(order: OrderRequest) -> None:
    """
    Add every item of a shipped order to the ordering user's inventory.
    Does not commit.
    """
    for item in order.items:
        row = db.session.query(UserInventory).filter_by(
            user_id=order.user_id,
            product_id=item.product_id,
        ).first()
        if row is None:
            row = UserInventory(
                user_id=order.user_id,
                product_id=item.product_id,
                quantity_received=0,
                quantity_used=0,
                quantity_available=0,
            )
            db.session.add(row)
        row.quantity_received += item.quantity
        row.quantity_available += item.quantity
        row.last_updated = utcnow()
    db.session.flush()


def consume_user_inventory(*, user_id: int, product_id: int, quantity: int) -> UserInventory:
    """Move quantity from available to used. Raises ValidationError if short."""
    row = db.session.query(UserInventory).filter_by(user_id=user_id, product_id=product_id).first()
    available = row.quantity_available if row else 0
    if row is None or available < quantity:
        raise ValidationError(f"Insufficient inventory. Available: {available}")
    row.quantity_available -= quantity
    row.quantity_used += quantity
    row.last_updated = utcnow()
    return row


def _shipped_totals(user_ids: list[int]) -> dict[tuple[int, int], int]:
    if not user_ids:
        return {}
    rows = (
        db.session.query(
            OrderRequest.user_id,
            OrderRequestItem.product_id,
            db.func.sum(OrderRequestItem.quantity),
        )
        .join(OrderRequest, OrderRequest.id == OrderRequestItem.order_request_id)
        .filter(
            OrderRequest.user_id.in_(user_ids),
            OrderRequest.status == STATUS_SHIPPED,
        )
        .group_by(OrderRequest.user_id, OrderRequestItem.product_id)
        .all()
    )
    return {(user_id, product_id): int(total or 0) for user_id, product_id, total in rows}


def rebuild_inventory(user_ids: list[int]) -> int:
    """
    Recompute quantity_received from SHIPPED orders for the given users.

    quantity_used is kept, so available = received - used (never below 0).
    Returns the number of inventory rows written. Does not commit.
    """
    totals = _shipped_totals(user_ids)
    existing = {
        (row.user_id, row.product_id): row
        for row in db.session.query(UserInventory).filter(UserInventory.user_id.in_(user_ids)).all()
    } if user_ids else {}

    now = utcnow()
    written = 0
    for key, received in totals.items():
        row = existing.get(key)
        if row is None:
            row = UserInventory(user_id=key[0], product_id=key[1], quantity_used=0)
            db.session.add(row)
        row.quantity_received = received
        row.quantity_available = max(0, received - (row.quantity_used or 0))
        row.last_updated = now
        written += 1
    db.session.flush()
    return written


def list_user_inventory(*, user_id: int) -> list[dict]:
    """The user's inventory; backfilled from shipped orders the first time it is empty."""
    rows = _inventory_rows(user_id)
    if not rows and rebuild_inventory([user_id]):
        db.session.commit()
        rows = _inventory_rows(user_id)
    return [row.to_dict() for row in rows]


def _inventory_rows(user_id: int) -> list[UserInventory]:
    return (
        db.session.query(UserInventory)
        .filter(UserInventory.user_id == user_id)
        .order_by(UserInventory.last_updated.desc(), UserInventory.id.desc())
        .all()
    )


def populate_company_inventory(*, company_id: int | None) -> dict:
    if company_id is None:
        raise ValidationError("User is not associated with a company")
    user_ids = [
        uid for (uid,) in db.session.query(User.id).filter(User.company_id == company_id).all()
    ]
    written = rebuild_inventory(user_ids)
    db.session.commit()
    return {"message": "Inventory populated from shipped orders", "usersProcessed": len(user_ids), "itemsWritten": written}


def inventory_summary(rows: list[UserInventory]) -> dict:
    """Counts and value over inventory rows (low stock: 1..5 units)."""
    return {
        "totalProducts": len(rows),
        "productsInStock": sum(1 for r in rows if r.quantity_available > 0),
        "outOfStock": sum(1 for r in rows if r.quantity_available <= 0),
        "lowStock": sum(1 for r in rows if 0 < r.quantity_available <= 5),
        "totalQuantity": sum(r.quantity_available for r in rows),
        "inventoryValue": round(
            sum(float(r.product.price) * r.quantity_available for r in rows if r.product), 2
        ),
    }
