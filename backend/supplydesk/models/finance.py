from __future__ import annotations

from ..extensions import db
from ..validation import to_number
from supplydesk.time_utils import to_utc_z, utcnow

CREDIT_GRANTED = "GRANTED"
CREDIT_PAYMENT = "CREDIT_PAYMENT"


class Payment(db.Model):
    """Money a user paid to the company; reduces their outstanding balance."""
    __tablename__ = "payments"
    __table_args__ = (
        db.Index("ix_payments_company_date", "company_id", "payment_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.Text, nullable=True)
    receipt_url = db.Column(db.String(512), nullable=True)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    is_from_credit = db.Column(db.Boolean, nullable=False, default=False)
    credit_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("payments", lazy=True))

    def to_dict(self, *, include_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "userId": self.user_id,
            "companyId": self.company_id,
            "amount": to_number(self.amount),
            "description": self.description,
            "receiptUrl": self.receipt_url,
            "paymentDate": to_utc_z(self.payment_date),
            "isFromCredit": self.is_from_credit,
            "creditAmount": to_number(self.credit_amount),
            "createdAt": to_utc_z(self.created_at),
        }
        if include_user:
            data["user"] = self.user.to_summary() if self.user else None
        return data


class Expense(db.Model):
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_company_date", "company_id", "expense_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(120), nullable=True)
    receipt_url = db.Column(db.String(512), nullable=True)
    expense_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref=db.backref("expenses", lazy=True))

    def to_dict(self, *, include_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "userId": self.user_id,
            "companyId": self.company_id,
            "amount": to_number(self.amount),
            "description": self.description,
            "category": self.category,
            "receiptUrl": self.receipt_url,
            "expenseDate": to_utc_z(self.expense_date),
            "createdAt": to_utc_z(self.created_at),
        }
        if include_user:
            data["user"] = self.user.to_summary() if self.user else None
        return data


class CreditTransaction(db.Model):
    """Audit trail for credit limit grants and credit repayments."""
    __tablename__ = "credit_transactions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    payment_id = db.Column(db.Integer, db.ForeignKey("payments.id"), nullable=True)

    type = db.Column(db.String(32), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    user = db.relationship("User", backref=db.backref("credit_transactions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type,
            "amount": to_number(self.amount),
            "description": self.description,
            "paymentId": self.payment_id,
            "createdAt": to_utc_z(self.created_at),
            "user": self.user.to_summary() if self.user else None,
        }
