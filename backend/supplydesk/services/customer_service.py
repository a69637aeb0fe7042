# Overview: Service-layer operations for a user's own customers, credit sales and collections.

"""
Customer Service

A user sells items from their own inventory to customers on credit:

- a customer order moves quantity from available to used in UserInventory
  and adds its total to the customer's total_credit / outstanding_balance
- a customer payment may not exceed the outstanding balance and is applied
  to unpaid orders oldest first
"""

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import Customer, CustomerOrder, CustomerPayment, Product, User
from ..validation import (
    NotFoundError,
    ValidationError,
    parse_amount,
    parse_datetime_field,
    parse_int,
    parse_positive_int,
    require_fields,
    to_number,
)
from .inventory_service import consume_user_inventory
from .tenant_service import require_customer_of_user, require_member_in_company
from supplydesk.time_utils import utcnow

ZERO = Decimal("0")


def list_customers(*, user_id: int) -> list[dict]:
    customers = (
        db.session.query(Customer)
        .filter(Customer.user_id == user_id)
        .order_by(Customer.name.asc(), Customer.id.asc())
        .all()
    )
    return [
        {
            **c.to_dict(),
            "_count": {"orders": len(c.orders), "payments": len(c.payments)},
        }
        for c in customers
    ]


def create_customer(*, user: User, payload: dict) -> dict:
    require_fields(payload, "name")
    customer = Customer(
        user_id=user.id,
        company_id=user.company_id,
        name=str(payload["name"]).strip(),
        phone=payload.get("phone"),
        email=payload.get("email"),
        address=payload.get("address"),
    )
    db.session.add(customer)
    db.session.commit()
    return customer.to_dict()


def list_customer_orders(*, user_id: int, customer_id: int) -> list[dict]:
    customer = require_customer_of_user(customer_id, user_id)
    return [o.to_dict() for o in customer.orders]


def create_customer_order(*, user: User, customer_id: int, payload: dict) -> dict:
    """Sell from the user's inventory to one of their customers on credit."""
    customer = require_customer_of_user(customer_id, user.id)
    require_fields(payload, "productId", "quantity")
    product_id = parse_int(payload["productId"], "productId")
    quantity = parse_positive_int(payload["quantity"], "quantity")

    product = db.session.get(Product, product_id)
    if product is None or product.company_id != user.company_id:
        raise NotFoundError("Product not found")

    if payload.get("unitPrice") is not None:
        unit_price = parse_amount(payload["unitPrice"], "unitPrice")
    else:
        unit_price = product.price

    consume_user_inventory(user_id=user.id, product_id=product.id, quantity=quantity)

    total = unit_price * quantity
    order = CustomerOrder(
        customer_id=customer.id,
        product_id=product.id,
        quantity=quantity,
        unit_price=unit_price,
        total_amount=total,
        paid_amount=ZERO,
        remaining_amount=total,
        is_paid=False,
        notes=payload.get("notes"),
        order_date=utcnow(),
    )
    db.session.add(order)

    customer.total_credit = (customer.total_credit or ZERO) + total
    customer.outstanding_balance = (customer.outstanding_balance or ZERO) + total
    db.session.commit()

    return {"order": order.to_dict(), "customer": customer.to_dict()}


def list_customer_payments(*, user_id: int, customer_id: int) -> list[dict]:
    customer = require_customer_of_user(customer_id, user_id)
    return [p.to_dict() for p in customer.payments]


def apply_payment_fifo(customer: Customer, amount: Decimal) -> list[CustomerOrder]:
    """
    Spread amount across unpaid orders, oldest order_date first.
    Returns the orders that were touched. Does not commit.
    """
    unpaid = (
        db.session.query(CustomerOrder)
        .filter(
            CustomerOrder.customer_id == customer.id,
            CustomerOrder.is_paid.is_(False),
        )
        .order_by(CustomerOrder.order_date.asc(), CustomerOrder.id.asc())
        .all()
    )
    remaining = amount
    touched = []
    for order in unpaid:
        if remaining <= 0:
            break
        applied = min(remaining, order.remaining_amount)
        order.paid_amount = (order.paid_amount or ZERO) + applied
        order.remaining_amount = order.remaining_amount - applied
        order.is_paid = order.remaining_amount <= 0
        remaining -= applied
        touched.append(order)
    return touched


def create_customer_payment(*, user: User, customer_id: int, payload: dict) -> dict:
    customer = require_customer_of_user(customer_id, user.id)
    amount = parse_amount(payload.get("amount"), "amount", positive=True)

    outstanding = customer.outstanding_balance or ZERO
    if amount > outstanding:
        raise ValidationError(
            f"Payment amount exceeds outstanding balance ({to_number(outstanding):.2f})"
        )

    payment_date = utcnow()
    if payload.get("paymentDate"):
        payment_date = parse_datetime_field(payload["paymentDate"], "paymentDate")

    payment = CustomerPayment(
        customer_id=customer.id,
        user_id=user.id,
        amount=amount,
        description=payload.get("description"),
        payment_date=payment_date,
    )
    db.session.add(payment)

    customer.total_paid = (customer.total_paid or ZERO) + amount
    customer.outstanding_balance = outstanding - amount
    touched = apply_payment_fifo(customer, amount)
    db.session.commit()

    return {
        "payment": payment.to_dict(),
        "customer": customer.to_dict(),
        "ordersUpdated": [o.to_dict() for o in touched],
    }


def customer_debts(*, company_id: int, member_id: int) -> dict:
    """Director view: a member's customers that still owe money."""
    member = require_member_in_company(member_id, company_id)
    customers = (
        db.session.query(Customer)
        .filter(Customer.user_id == member.id, Customer.outstanding_balance > 0)
        .order_by(Customer.outstanding_balance.desc(), Customer.id.asc())
        .all()
    )
    total_outstanding = sum((c.outstanding_balance for c in customers), ZERO)
    total_credit = sum((c.total_credit for c in customers), ZERO)
    total_paid = sum((c.total_paid for c in customers), ZERO)

    return {
        "user": member.to_summary(),
        "customers": [
            {
                **c.to_dict(),
                "unpaidOrders": [o.to_dict() for o in c.orders if not o.is_paid],
            }
            for c in customers
        ],
        "totals": {
            "customersWithDebt": len(customers),
            "totalOutstanding": to_number(total_outstanding),
            "totalCredit": to_number(total_credit),
            "totalPaid": to_number(total_paid),
        },
    }
