# Overview: Outstanding balance computation for users and companies.

"""
Outstanding balance = max(0, sum(approved order totals) - sum(payments)).

Nothing here is persisted or cached; every read recomputes from the order
and payment rows. "Approved" covers APPROVED, FULFILLED and SHIPPED orders.
"""

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import OrderRequest, Payment, User, ROLE_USER
from ..models.orders import BALANCE_STATUSES
from ..validation import to_number

ZERO = Decimal("0")


def outstanding(order_total: Decimal, payment_total: Decimal) -> Decimal:
    return max(ZERO, order_total - payment_total)


def _approved_orders(user_id: int) -> list[OrderRequest]:
    return (
        db.session.query(OrderRequest)
        .filter(
            OrderRequest.user_id == user_id,
            OrderRequest.status.in_(BALANCE_STATUSES),
        )
        .order_by(OrderRequest.created_at.desc(), OrderRequest.id.desc())
        .all()
    )


def _payments(user_id: int) -> list[Payment]:
    return (
        db.session.query(Payment)
        .filter(Payment.user_id == user_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )


def user_balance(user: User) -> dict:
    orders = _approved_orders(user.id)
    payments = _payments(user.id)

    order_total = sum((o.total_amount for o in orders), ZERO)
    payment_total = sum((p.amount for p in payments), ZERO)
    credit_limit = user.credit_limit or ZERO
    credit_used = user.credit_used or ZERO

    return {
        "totalOrderAmount": to_number(order_total),
        "totalPayments": to_number(payment_total),
        "outstandingBalance": to_number(outstanding(order_total, payment_total)),
        "orders": [o.to_dict() for o in orders],
        "payments": [p.to_dict() for p in payments],
        "creditLimit": to_number(credit_limit),
        "creditUsed": to_number(credit_used),
        "availableCredit": to_number(max(ZERO, credit_limit - credit_used)),
    }


def company_balances(*, company_id: int) -> dict:
    members = (
        db.session.query(User)
        .filter(User.company_id == company_id, User.role == ROLE_USER)
        .order_by(User.name.asc(), User.id.asc())
        .all()
    )

    user_balances = []
    total_orders = ZERO
    total_payments = ZERO
    total_outstanding = ZERO
    for member in members:
        orders = _approved_orders(member.id)
        payments = _payments(member.id)
        order_total = sum((o.total_amount for o in orders), ZERO)
        payment_total = sum((p.amount for p in payments), ZERO)
        balance = outstanding(order_total, payment_total)

        user_balances.append({
            "userId": member.id,
            "userName": member.name,
            "userEmail": member.email,
            "totalOrderAmount": to_number(order_total),
            "totalPayments": to_number(payment_total),
            "outstandingBalance": to_number(balance),
            "ordersCount": len(orders),
            "paymentsCount": len(payments),
        })
        total_orders += order_total
        total_payments += payment_total
        total_outstanding += balance

    return {
        "userBalances": user_balances,
        "companyTotals": {
            "totalOrderAmount": to_number(total_orders),
            "totalPayments": to_number(total_payments),
            "totalOutstanding": to_number(total_outstanding),
        },
    }
