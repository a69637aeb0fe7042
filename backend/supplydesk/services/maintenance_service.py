# Overview: Service-layer operations for maintenance; encapsulates business logic and database work.

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import inspect

from ..extensions import db
from ..models import (
    Category,
    Company,
    CreditTransaction,
    Customer,
    CustomerOrder,
    CustomerPayment,
    Expense,
    OrderRequest,
    OrderRequestItem,
    Payment,
    Product,
    RestockRecord,
    SecurityEvent,
    SessionToken,
    StockAlert,
    StockMovement,
    User,
    UserInventory,
)
from supplydesk.time_utils import utcnow

ORDER_TIMESTAMP_COLUMNS = ("approved_at", "rejected_at", "fulfilled_at", "shipped_at")


def cleanup_security_events(*, retention_days: int = 90) -> int:
    """Delete security events older than retention_days."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < cutoff
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def _delete_user_rows(user_ids: list[int]) -> None:
    """Remove everything owned by the given users, children before parents."""
    if not user_ids:
        return

    customer_ids = db.select(Customer.id).where(Customer.user_id.in_(user_ids))
    db.session.query(CustomerPayment).filter(
        db.or_(CustomerPayment.customer_id.in_(customer_ids), CustomerPayment.user_id.in_(user_ids))
    ).delete(synchronize_session=False)
    db.session.query(CustomerOrder).filter(
        CustomerOrder.customer_id.in_(customer_ids)
    ).delete(synchronize_session=False)
    db.session.query(Customer).filter(Customer.user_id.in_(user_ids)).delete(synchronize_session=False)

    db.session.query(CreditTransaction).filter(
        CreditTransaction.user_id.in_(user_ids)
    ).delete(synchronize_session=False)
    db.session.query(Payment).filter(Payment.user_id.in_(user_ids)).delete(synchronize_session=False)
    db.session.query(Expense).filter(Expense.user_id.in_(user_ids)).delete(synchronize_session=False)

    order_ids = db.select(OrderRequest.id).where(OrderRequest.user_id.in_(user_ids))
    db.session.query(OrderRequestItem).filter(
        OrderRequestItem.order_request_id.in_(order_ids)
    ).delete(synchronize_session=False)
    db.session.query(OrderRequest).filter(OrderRequest.user_id.in_(user_ids)).delete(synchronize_session=False)

    db.session.query(UserInventory).filter(UserInventory.user_id.in_(user_ids)).delete(synchronize_session=False)
    db.session.query(SessionToken).filter(SessionToken.user_id.in_(user_ids)).delete(synchronize_session=False)
    db.session.query(SecurityEvent).filter(SecurityEvent.user_id.in_(user_ids)).delete(synchronize_session=False)

    # Stock history stays; it just loses its author
    db.session.query(StockMovement).filter(StockMovement.created_by_id.in_(user_ids)).update(
        {StockMovement.created_by_id: None}, synchronize_session=False
    )
    db.session.query(RestockRecord).filter(RestockRecord.user_id.in_(user_ids)).update(
        {RestockRecord.user_id: None}, synchronize_session=False
    )
    db.session.query(Product).filter(Product.created_by_id.in_(user_ids)).update(
        {Product.created_by_id: None}, synchronize_session=False
    )


def purge_user(user: User) -> None:
    """Delete a user and all rows they own. Does not commit."""
    _delete_user_rows([user.id])
    db.session.query(User).filter(User.id == user.id).delete(synchronize_session=False)
    db.session.expire_all()


def purge_company(company: Company) -> None:
    """Delete a company, its users and every row scoped to it. Does not commit."""
    company_id = company.id
    user_ids = [uid for (uid,) in db.session.query(User.id).filter(User.company_id == company_id).all()]
    _delete_user_rows(user_ids)

    product_ids = db.select(Product.id).where(Product.company_id == company_id)
    db.session.query(StockAlert).filter(StockAlert.company_id == company_id).delete(synchronize_session=False)
    db.session.query(StockMovement).filter(StockMovement.company_id == company_id).delete(synchronize_session=False)
    db.session.query(RestockRecord).filter(RestockRecord.company_id == company_id).delete(synchronize_session=False)
    db.session.query(UserInventory).filter(UserInventory.product_id.in_(product_ids)).delete(synchronize_session=False)
    db.session.query(CustomerOrder).filter(CustomerOrder.product_id.in_(product_ids)).delete(synchronize_session=False)

    order_ids = db.select(OrderRequest.id).where(OrderRequest.company_id == company_id)
    db.session.query(OrderRequestItem).filter(
        db.or_(
            OrderRequestItem.order_request_id.in_(order_ids),
            OrderRequestItem.product_id.in_(product_ids),
        )
    ).delete(synchronize_session=False)
    db.session.query(OrderRequest).filter(OrderRequest.company_id == company_id).delete(synchronize_session=False)

    for model in (Payment, Expense, CreditTransaction, Customer, SessionToken, SecurityEvent):
        db.session.query(model).filter(model.company_id == company_id).delete(synchronize_session=False)

    db.session.query(Product).filter(Product.company_id == company_id).delete(synchronize_session=False)
    db.session.query(Category).filter(Category.company_id == company_id).update(
        {Category.company_id: None}, synchronize_session=False
    )
    db.session.query(User).filter(User.company_id == company_id).delete(synchronize_session=False)
    db.session.query(Company).filter(Company.id == company_id).delete(synchronize_session=False)
    db.session.expire_all()


def wipe_all_data() -> dict[str, int]:
    """
    Delete every row in every table, children first. Schema is kept.

    Returns {table_name: rows_deleted}.
    """
    counts = {}
    for table in reversed(db.metadata.sorted_tables):
        result = db.session.execute(table.delete())
        counts[table.name] = result.rowcount or 0
    db.session.commit()
    return counts


def check_order_schema() -> dict:
    """
    Verify the order lifecycle timestamp columns exist and count orders.

    Returns {"missingColumns": [...], "orderCount": int | None}.
    """
    inspector = inspect(db.engine)
    if not inspector.has_table(OrderRequest.__tablename__):
        return {"missingColumns": list(ORDER_TIMESTAMP_COLUMNS), "orderCount": None}

    present = {col["name"] for col in inspector.get_columns(OrderRequest.__tablename__)}
    missing = [name for name in ORDER_TIMESTAMP_COLUMNS if name not in present]
    count = db.session.query(db.func.count(OrderRequest.id)).scalar() if not missing else None
    return {"missingColumns": missing, "orderCount": count}
