# Overview: Service-layer operations for payments, expenses and user credit.

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import Payment, Expense, CreditTransaction, User, ROLE_USER
from ..models.finance import CREDIT_GRANTED, CREDIT_PAYMENT
from ..validation import (
    ValidationError,
    parse_amount,
    parse_datetime_field,
    parse_int,
    require_fields,
    to_number,
)
from .tenant_service import require_member_in_company
from supplydesk.time_utils import utcnow


def _require_company(user: User) -> int:
    if user.company_id is None:
        raise ValidationError("User is not associated with a company")
    return user.company_id


# =============================================================================
# PAYMENTS
# =============================================================================


def list_user_payments(*, user_id: int) -> list[dict]:
    payments = (
        db.session.query(Payment)
        .filter(Payment.user_id == user_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )
    return [p.to_dict() for p in payments]


def create_payment(*, user: User, payload: dict) -> dict:
    require_fields(payload, "amount", "description", "paymentDate")
    amount = parse_amount(payload["amount"], "amount", positive=True)
    payment_date = parse_datetime_field(payload["paymentDate"], "paymentDate")
    company_id = _require_company(user)

    payment = Payment(
        user_id=user.id,
        company_id=company_id,
        amount=amount,
        description=str(payload["description"]).strip(),
        receipt_url=payload.get("receiptUrl"),
        payment_date=payment_date,
    )
    db.session.add(payment)
    db.session.commit()
    return payment.to_dict()


def list_company_payments(*, company_id: int) -> list[dict]:
    payments = (
        db.session.query(Payment)
        .filter(Payment.company_id == company_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )
    return [p.to_dict(include_user=True) for p in payments]


# =============================================================================
# EXPENSES
# =============================================================================


def list_user_expenses(*, user_id: int) -> list[dict]:
    expenses = (
        db.session.query(Expense)
        .filter(Expense.user_id == user_id)
        .order_by(Expense.expense_date.desc(), Expense.id.desc())
        .all()
    )
    return [e.to_dict() for e in expenses]


def create_expense(*, user: User, payload: dict) -> dict:
    require_fields(payload, "amount", "description")
    amount = parse_amount(payload["amount"], "amount", positive=True)
    expense_date = utcnow()
    if payload.get("expenseDate"):
        expense_date = parse_datetime_field(payload["expenseDate"], "expenseDate")
    company_id = _require_company(user)

    expense = Expense(
        user_id=user.id,
        company_id=company_id,
        amount=amount,
        description=str(payload["description"]).strip(),
        category=payload.get("category") or None,
        receipt_url=payload.get("receiptUrl"),
        expense_date=expense_date,
    )
    db.session.add(expense)
    db.session.commit()
    return expense.to_dict()


def list_company_expenses(*, company_id: int) -> list[dict]:
    expenses = (
        db.session.query(Expense)
        .filter(Expense.company_id == company_id)
        .order_by(Expense.expense_date.desc(), Expense.id.desc())
        .all()
    )
    return [e.to_dict(include_user=True) for e in expenses]


# =============================================================================
# CREDIT
# =============================================================================


def credit_overview(*, company_id: int) -> dict:
    members = (
        db.session.query(User)
        .filter(User.company_id == company_id, User.role == ROLE_USER)
        .order_by(User.name.asc(), User.id.asc())
        .all()
    )
    transactions = (
        db.session.query(CreditTransaction)
        .filter(CreditTransaction.company_id == company_id)
        .order_by(CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
        .limit(50)
        .all()
    )
    return {
        "users": [
            {
                **m.to_summary(),
                "creditLimit": to_number(m.credit_limit),
                "creditUsed": to_number(m.credit_used),
                "availableCredit": to_number(max(Decimal("0"), (m.credit_limit or 0) - (m.credit_used or 0))),
            }
            for m in members
        ],
        "transactions": [t.to_dict() for t in transactions],
    }


def set_credit_limit(*, company_id: int, payload: dict) -> dict:
    """Grant a credit limit to a company member and log it."""
    if payload.get("userId") is None or payload.get("creditLimit") is None:
        raise ValidationError("userId and creditLimit are required")
    credit_limit = parse_amount(payload["creditLimit"], "creditLimit")
    member = require_member_in_company(parse_int(payload["userId"], "userId"), company_id)

    member.credit_limit = credit_limit
    transaction = CreditTransaction(
        user_id=member.id,
        company_id=company_id,
        type=CREDIT_GRANTED,
        amount=credit_limit,
        description=payload.get("description") or f"Credit limit set to {credit_limit}",
    )
    db.session.add(transaction)
    db.session.commit()

    return {"user": member.to_dict(), "transaction": transaction.to_dict()}


def create_credit_payment(*, user: User, payload: dict) -> dict:
    """
    Payment that pays down used credit first.

    creditPaid = min(amount, credit_used); the rest is a regular payment.
    """
    amount = parse_amount(payload.get("amount"), "amount", positive=True)
    company_id = _require_company(user)
    payment_date = utcnow()
    if payload.get("paymentDate"):
        payment_date = parse_datetime_field(payload["paymentDate"], "paymentDate")

    credit_used = user.credit_used or Decimal("0")
    credit_portion = min(amount, credit_used)

    payment = Payment(
        user_id=user.id,
        company_id=company_id,
        amount=amount,
        description=payload.get("description") or "Credit payment",
        receipt_url=payload.get("receiptUrl"),
        payment_date=payment_date,
        is_from_credit=credit_portion > 0,
        credit_amount=credit_portion,
    )
    db.session.add(payment)
    db.session.flush()

    if credit_portion > 0:
        user.credit_used = credit_used - credit_portion
        db.session.add(CreditTransaction(
            user_id=user.id,
            company_id=company_id,
            payment_id=payment.id,
            type=CREDIT_PAYMENT,
            amount=credit_portion,
            description=f"Credit payment of {credit_portion}",
        ))
    db.session.commit()

    return {
        "payment": payment.to_dict(),
        "creditPaid": to_number(credit_portion),
        "regularPayment": to_number(amount - credit_portion),
    }
