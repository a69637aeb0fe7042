# Overview: Idempotent demo data used by `flask system seed` and `flask system init`.

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import (
    Category,
    Company,
    Expense,
    OrderRequest,
    OrderRequestItem,
    Payment,
    Product,
    User,
    ROLE_ADMIN,
    ROLE_DIRECTOR,
    ROLE_USER,
)
from ..models.orders import STATUS_PENDING
from . import auth_service

DEMO_PASSWORD = "password123"

DEMO_COMPANIES = [
    {
        "name": "TechCorp Solutions",
        "email": "contact@techcorp.com",
        "phone": "+1-555-0123",
        "address": "123 Tech Street, Silicon Valley, CA 94000",
        "description": "Leading technology solutions provider",
    },
    {
        "name": "Global Enterprises",
        "email": "info@globalent.com",
        "phone": "+1-555-0456",
        "address": "456 Business Ave, New York, NY 10001",
        "description": "International business solutions",
    },
]

DEMO_CATEGORIES = [
    ("Electronics", "Electronic devices and components"),
    ("Office Supplies", "General office supplies and stationery"),
    ("Software", "Software licenses and subscriptions"),
    ("Hardware", "Computer hardware and accessories"),
]

DEMO_USERS = [
    ("System Administrator", "admin@demo.com", ROLE_ADMIN),
    ("John Director", "director@demo.com", ROLE_DIRECTOR),
    ("Jane User", "user@demo.com", ROLE_USER),
]

# (name, sku, price, quantity, min_stock, max_stock, category, description)
DEMO_PRODUCTS = [
    ("Dell XPS 13 Laptop", "DELL-XPS-13-001", "1299.99", 25, 5, 50, "Electronics",
     "High-performance ultrabook with Intel Core i7"),
    ("Wireless Mouse", "MOUSE-WL-001", "29.99", 100, 20, 200, "Hardware",
     "Ergonomic wireless mouse with USB receiver"),
    ("Office Chair", "CHAIR-ERG-001", "299.99", 15, 3, 30, "Office Supplies",
     "Ergonomic office chair with lumbar support"),
    ("A4 Paper Pack", "PAPER-A4-500", "12.99", 200, 50, 500, "Office Supplies",
     "500 sheets of premium A4 paper"),
]


def _get_or_create(model, defaults: dict, **lookup):
    instance = db.session.query(model).filter_by(**lookup).first()
    if instance is not None:
        return instance, False
    instance = model(**lookup, **defaults)
    db.session.add(instance)
    db.session.flush()
    return instance, True


def seed_demo_data() -> dict:
    """
    Create demo companies, categories, users, products and one sample
    order/payment/expense. Safe to run repeatedly.

    Returns counts of rows created per entity.
    """
    created = {"companies": 0, "categories": 0, "users": 0, "products": 0, "orders": 0}

    companies = []
    for data in DEMO_COMPANIES:
        company, was_created = _get_or_create(
            Company, {k: v for k, v in data.items() if k != "name"}, name=data["name"]
        )
        companies.append(company)
        created["companies"] += was_created
    primary = companies[0]

    categories = {}
    for name, description in DEMO_CATEGORIES:
        category, was_created = _get_or_create(Category, {"description": description}, name=name)
        categories[name] = category
        created["categories"] += was_created

    users = {}
    for name, email, role in DEMO_USERS:
        user = db.session.query(User).filter_by(email=email).first()
        if user is None:
            user = auth_service.create_user(
                name=name,
                email=email,
                password=DEMO_PASSWORD,
                role=role,
                company_id=primary.id,
                commit=False,
            )
            created["users"] += 1
        users[role] = user

    products = {}
    for name, sku, price, quantity, min_stock, max_stock, category, description in DEMO_PRODUCTS:
        product, was_created = _get_or_create(
            Product,
            {
                "name": name,
                "description": description,
                "price": Decimal(price),
                "quantity": quantity,
                "min_stock": min_stock,
                "max_stock": max_stock,
                "category_id": categories[category].id,
                "created_by_id": users[ROLE_DIRECTOR].id,
            },
            company_id=primary.id,
            sku=sku,
        )
        products[sku] = product
        created["products"] += was_created

    demo_user = users[ROLE_USER]
    has_orders = db.session.query(OrderRequest.id).filter_by(user_id=demo_user.id).first()
    if not has_orders:
        lines = [("DELL-XPS-13-001", 1), ("MOUSE-WL-001", 2)]
        order = OrderRequest(
            user_id=demo_user.id,
            company_id=primary.id,
            status=STATUS_PENDING,
            notes="Urgent request for new employee setup",
        )
        total = Decimal("0")
        for sku, qty in lines:
            product = products[sku]
            line_total = product.price * qty
            total += line_total
            order.items.append(OrderRequestItem(
                product_id=product.id,
                quantity=qty,
                unit_price=product.price,
                total_price=line_total,
            ))
        order.total_amount = total
        db.session.add(order)

        db.session.add(Payment(
            user_id=demo_user.id,
            company_id=primary.id,
            amount=Decimal("150.00"),
            description="Office supplies reimbursement",
        ))
        db.session.add(Expense(
            user_id=demo_user.id,
            company_id=primary.id,
            amount=Decimal("75.50"),
            description="Business lunch with client",
            category="Meals & Entertainment",
        ))
        created["orders"] += 1

    db.session.commit()
    return created
