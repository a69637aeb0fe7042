from __future__ import annotations

from ..extensions import db
from ..validation import to_number
from supplydesk.time_utils import to_utc_z, utcnow


class Customer(db.Model):
    """
    End customer of an individual user. Sales to customers are on credit and
    draw down the user's own inventory.

    outstanding_balance = total_credit - total_paid
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_user_name", "user_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)

    total_credit = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_paid = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    outstanding_balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("customers", lazy=True))
    orders = db.relationship(
        "CustomerOrder", backref="customer", lazy=True, order_by="CustomerOrder.order_date.desc()"
    )
    payments = db.relationship(
        "CustomerPayment", backref="customer", lazy=True, order_by="CustomerPayment.payment_date.desc()"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "totalCredit": to_number(self.total_credit),
            "totalPaid": to_number(self.total_paid),
            "outstandingBalance": to_number(self.outstanding_balance),
            "createdAt": to_utc_z(self.created_at),
        }


class CustomerOrder(db.Model):
    __tablename__ = "customer_orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    paid_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    remaining_amount = db.Column(db.Numeric(12, 2), nullable=False)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    notes = db.Column(db.Text, nullable=True)
    order_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product", backref=db.backref("customer_orders", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "unitPrice": to_number(self.unit_price),
            "totalAmount": to_number(self.total_amount),
            "paidAmount": to_number(self.paid_amount),
            "remainingAmount": to_number(self.remaining_amount),
            "isPaid": self.is_paid,
            "notes": self.notes,
            "orderDate": to_utc_z(self.order_date),
            "product": self.product.to_summary() if self.product else None,
        }


class CustomerPayment(db.Model):
    __tablename__ = "customer_payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.Text, nullable=True)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "userId": self.user_id,
            "amount": to_number(self.amount),
            "description": self.description,
            "paymentDate": to_utc_z(self.payment_date),
        }
