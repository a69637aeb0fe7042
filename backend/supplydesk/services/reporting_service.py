# Overview: Read-only aggregates for dashboards and performance reports.

from __future__ import annotations

from collections import defaultdict
from datetime import timedelta
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import (
    Company,
    Customer,
    CustomerOrder,
    Expense,
    OrderRequest,
    Payment,
    Product,
    User,
    UserInventory,
    ROLE_ADMIN,
    ROLE_DIRECTOR,
    ROLE_USER,
)
from ..models.orders import (
    STATUS_APPROVED,
    STATUS_DELIVERED,
    STATUS_FULFILLED,
    STATUS_PENDING,
    STATUS_SHIPPED,
)
from ..validation import ValidationError, to_decimal, to_number
from .inventory_service import inventory_summary
from supplydesk.time_utils import month_label, month_start, shift_months, to_utc_z, utcnow

PERIOD_MONTHS = {"3months": 3, "6months": 6, "12months": 12}
DEFAULT_PERIOD = "6months"

# Orders that made it past approval count as fulfilled for KPI purposes
APPROVED_OR_LATER = (STATUS_APPROVED, STATUS_FULFILLED, STATUS_SHIPPED, STATUS_DELIVERED)


def _sum(column, *criteria) -> Decimal:
    return to_decimal(db.session.query(db.func.coalesce(db.func.sum(column), 0)).filter(*criteria).scalar())


def _count(column, *criteria) -> int:
    return db.session.query(db.func.count(column)).filter(*criteria).scalar() or 0


# =============================================================================
# /dashboard/stats
# =============================================================================


def dashboard_stats(user: User) -> dict:
    if user.role == ROLE_ADMIN:
        return _admin_stats()
    return _user_stats(user)


def _admin_stats() -> dict:
    low_stock_level = current_app.config.get("LOW_STOCK_LEVEL", 5)
    return {
        "role": ROLE_ADMIN,
        "totalProducts": _count(Product.id, Product.is_active.is_(True)),
        "totalOrders": _count(OrderRequest.id),
        "totalCompanies": _count(Company.id),
        "totalUsers": _count(User.id),
        "lowStockProducts": _count(
            Product.id, Product.is_active.is_(True), Product.quantity <= low_stock_level
        ),
        "pendingOrders": _count(OrderRequest.id, OrderRequest.status == STATUS_PENDING),
        "totalPayments": to_number(_sum(Payment.amount)),
        "totalExpenses": to_number(_sum(Expense.amount)),
    }


def _user_stats(user: User) -> dict:
    inventory = db.session.query(UserInventory).filter(UserInventory.user_id == user.id).all()
    this_month = month_start(utcnow())
    monthly_revenue = _sum(
        CustomerOrder.total_amount,
        CustomerOrder.customer_id.in_(db.select(Customer.id).where(Customer.user_id == user.id)),
        CustomerOrder.order_date >= this_month,
    )
    return {
        "role": user.role,
        "totalOrders": _count(OrderRequest.id, OrderRequest.user_id == user.id),
        "pendingOrders": _count(
            OrderRequest.id, OrderRequest.user_id == user.id, OrderRequest.status == STATUS_PENDING
        ),
        "totalPayments": to_number(_sum(Payment.amount, Payment.user_id == user.id)),
        "totalExpenses": to_number(_sum(Expense.amount, Expense.user_id == user.id)),
        "inventory": inventory_summary(inventory),
        "totalCustomers": _count(Customer.id, Customer.user_id == user.id),
        "monthlyRevenue": to_number(monthly_revenue),
    }


# =============================================================================
# /api/director/dashboard
# =============================================================================


def director_dashboard(*, company_id: int) -> dict:
    now = utcnow()
    recent_cutoff = now - timedelta(days=30)

    members = (
        db.session.query(User)
        .filter(User.company_id == company_id, User.role != ROLE_DIRECTOR)
        .order_by(User.name.asc(), User.id.asc())
        .all()
    )

    user_summaries = []
    company_inventory = defaultdict(float)
    for member in members:
        inventory = inventory_summary(member.inventory)
        for key in ("totalProducts", "totalQuantity", "inventoryValue", "lowStock", "outOfStock"):
            company_inventory[key] += inventory[key]

        user_summaries.append({
            "user": member.to_dict(),
            "inventory": inventory,
            "performance": {
                "recentOrders": _count(
                    OrderRequest.id,
                    OrderRequest.user_id == member.id,
                    OrderRequest.created_at >= recent_cutoff,
                ),
                "monthlyPayments": to_number(_sum(
                    Payment.amount,
                    Payment.user_id == member.id,
                    Payment.payment_date >= recent_cutoff,
                )),
            },
        })

    def _orders(*criteria) -> int:
        return _count(OrderRequest.id, OrderRequest.company_id == company_id, *criteria)

    return {
        "companyStats": {
            "totalUsers": len(members),
            "totalOrders": _orders(),
            "pendingOrders": _orders(OrderRequest.status == STATUS_PENDING),
            "approvedOrders": _orders(OrderRequest.status == STATUS_APPROVED),
            "shippedOrders": _orders(OrderRequest.status == STATUS_SHIPPED),
            "totalPayments": to_number(_sum(Payment.amount, Payment.company_id == company_id)),
            "totalExpenses": to_number(_sum(Expense.amount, Expense.company_id == company_id)),
        },
        "companyInventory": {
            "totalProducts": int(company_inventory["totalProducts"]),
            "totalQuantity": int(company_inventory["totalQuantity"]),
            "inventoryValue": round(company_inventory["inventoryValue"], 2),
            "lowStock": int(company_inventory["lowStock"]),
            "outOfStock": int(company_inventory["outOfStock"]),
        },
        "users": user_summaries,
    }


# =============================================================================
# /api/director/performance
# =============================================================================


def performance_report(*, company_id: int, period: str | None) -> dict:
    period = period or DEFAULT_PERIOD
    if period not in PERIOD_MONTHS:
        raise ValidationError(f"period must be one of: {', '.join(PERIOD_MONTHS)}")
    months = PERIOD_MONTHS[period]

    now = utcnow()
    start = shift_months(now, -months)

    members = (
        db.session.query(User)
        .filter(User.company_id == company_id, User.role == ROLE_USER)
        .order_by(User.name.asc(), User.id.asc())
        .all()
    )
    orders = db.session.query(OrderRequest).filter(
        OrderRequest.company_id == company_id, OrderRequest.created_at >= start
    ).all()
    payments = db.session.query(Payment).filter(
        Payment.company_id == company_id, Payment.payment_date >= start
    ).all()
    expenses = db.session.query(Expense).filter(
        Expense.company_id == company_id, Expense.expense_date >= start
    ).all()

    user_performance = []
    active_users = 0
    for member in members:
        member_orders = [o for o in orders if o.user_id == member.id]
        member_payments = [p for p in payments if p.user_id == member.id]
        member_expenses = [e for e in expenses if e.user_id == member.id]
        order_amount = sum((o.total_amount for o in member_orders), Decimal("0"))
        activity = (
            [o.created_at for o in member_orders]
            + [p.payment_date for p in member_payments]
            + [e.expense_date for e in member_expenses]
        )
        if activity:
            active_users += 1
        user_performance.append({
            "userId": member.id,
            "userName": member.name,
            "userEmail": member.email,
            "totalOrders": len(member_orders),
            "totalOrderAmount": to_number(order_amount),
            "totalPayments": to_number(sum((p.amount for p in member_payments), Decimal("0"))),
            "totalExpenses": to_number(sum((e.amount for e in member_expenses), Decimal("0"))),
            "avgOrderValue": round(float(order_amount) / len(member_orders), 2) if member_orders else 0,
            "lastActivity": to_utc_z(max(activity)) if activity else None,
        })

    monthly_trends = []
    for i in range(months - 1, -1, -1):
        window_start = shift_months(now, -(i + 1))
        window_end = shift_months(now, -i)

        def _in_window(dt):
            return dt is not None and window_start <= dt < window_end

        window_orders = [o for o in orders if _in_window(o.created_at)]
        window_payments = [p for p in payments if _in_window(p.payment_date)]
        window_expenses = [e for e in expenses if _in_window(e.expense_date)]
        window_users = (
            {o.user_id for o in window_orders}
            | {p.user_id for p in window_payments}
            | {e.user_id for e in window_expenses}
        )
        monthly_trends.append({
            "month": month_label(window_end),
            "orders": len(window_orders),
            "orderAmount": to_number(sum((o.total_amount for o in window_orders), Decimal("0"))),
            "payments": to_number(sum((p.amount for p in window_payments), Decimal("0"))),
            "expenses": to_number(sum((e.amount for e in window_expenses), Decimal("0"))),
            "users": len(window_users),
        })

    by_category = defaultdict(lambda: {"amount": Decimal("0"), "count": 0})
    for expense in expenses:
        bucket = by_category[expense.category or "Uncategorized"]
        bucket["amount"] += expense.amount
        bucket["count"] += 1
    category_breakdown = sorted(
        (
            {"category": name, "amount": to_number(v["amount"]), "count": v["count"]}
            for name, v in by_category.items()
        ),
        key=lambda row: row["amount"],
        reverse=True,
    )

    total_revenue = sum((p.amount for p in payments), Decimal("0"))
    total_expenses = sum((e.amount for e in expenses), Decimal("0"))
    approved = sum(1 for o in orders if o.status in APPROVED_OR_LATER)

    return {
        "period": period,
        "userPerformance": user_performance,
        "monthlyTrends": monthly_trends,
        "categoryBreakdown": category_breakdown,
        "kpis": {
            "totalRevenue": to_number(total_revenue),
            "totalExpenses": to_number(total_expenses),
            "netProfit": to_number(total_revenue - total_expenses),
            "activeUsers": active_users,
            "totalOrders": len(orders),
            "avgOrderValue": round(float(total_revenue) / len(orders), 2) if orders else 0,
            "orderFulfillmentRate": round(approved / len(orders) * 100, 1) if orders else 0,
        },
    }
