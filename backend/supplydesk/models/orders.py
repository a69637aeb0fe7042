from __future__ import annotations

from ..extensions import db
from ..validation import to_number
from supplydesk.time_utils import to_utc_z, utcnow

STATUS_PENDING = "PENDING"
STATUS_APPROVED = "APPROVED"
STATUS_REJECTED = "REJECTED"
STATUS_FULFILLED = "FULFILLED"
STATUS_SHIPPED = "SHIPPED"
STATUS_DELIVERED = "DELIVERED"
STATUS_CANCELLED = "CANCELLED"

ORDER_STATUSES = (
    STATUS_PENDING,
    STATUS_APPROVED,
    STATUS_REJECTED,
    STATUS_FULFILLED,
    STATUS_SHIPPED,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
)

# Statuses a director may set through the order status endpoints
DIRECTOR_SETTABLE_STATUSES = (
    STATUS_PENDING,
    STATUS_APPROVED,
    STATUS_REJECTED,
    STATUS_FULFILLED,
    STATUS_SHIPPED,
    STATUS_DELIVERED,
)

# Orders in these statuses count toward what a user owes
BALANCE_STATUSES = (STATUS_APPROVED, STATUS_FULFILLED, STATUS_SHIPPED)

# Orders in these statuses count as sales in product analytics
SALES_STATUSES = (STATUS_APPROVED, STATUS_SHIPPED, STATUS_DELIVERED)

STATUS_TIMESTAMP_FIELDS = {
    STATUS_APPROVED: "approved_at",
    STATUS_REJECTED: "rejected_at",
    STATUS_FULFILLED: "fulfilled_at",
    STATUS_SHIPPED: "shipped_at",
}


class OrderRequest(db.Model):
    """
    A user's request to receive company stock.

    Lifecycle: PENDING -> APPROVED | REJECTED -> FULFILLED -> SHIPPED -> DELIVERED.
    Stock is only deducted when the order ships.
    """
    __tablename__ = "order_requests"
    __table_args__ = (
        db.Index("ix_order_requests_company_status", "company_id", "status"),
        db.Index("ix_order_requests_user_status", "user_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejected_at = db.Column(db.DateTime(timezone=True), nullable=True)
    fulfilled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    shipped_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("order_requests", lazy=True))
    company = db.relationship("Company", backref=db.backref("order_requests", lazy=True))
    items = db.relationship(
        "OrderRequestItem",
        backref="order_request",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderRequestItem.id",
    )

    def __repr__(self) -> str:
        return f"<OrderRequest id={self.id} status={self.status} total={self.total_amount}>"

    def to_dict(self, *, include_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "userId": self.user_id,
            "companyId": self.company_id,
            "status": self.status,
            "totalAmount": to_number(self.total_amount),
            "notes": self.notes,
            "approvedAt": to_utc_z(self.approved_at),
            "rejectedAt": to_utc_z(self.rejected_at),
            "fulfilledAt": to_utc_z(self.fulfilled_at),
            "shippedAt": to_utc_z(self.shipped_at),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "items": [item.to_dict() for item in self.items],
        }
        if include_user:
            data["user"] = self.user.to_summary() if self.user else None
        return data


class OrderRequestItem(db.Model):
    __tablename__ = "order_request_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_request_id = db.Column(db.Integer, db.ForeignKey("order_requests.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_price = db.Column(db.Numeric(12, 2), nullable=False)

    product = db.relationship("Product", backref=db.backref("order_items", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "unitPrice": to_number(self.unit_price),
            "totalPrice": to_number(self.total_price),
            "product": self.product.to_summary() if self.product else None,
        }
