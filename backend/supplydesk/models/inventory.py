from __future__ import annotations

from ..extensions import db
from ..validation import to_number
from supplydesk.time_utils import to_utc_z, utcnow

MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
MOVEMENT_ADJUSTMENT = "ADJUSTMENT"
MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_ADJUSTMENT)

REFERENCE_MANUAL = "MANUAL"
REFERENCE_ORDER = "ORDER"
REFERENCE_RESTOCK = "RESTOCK"

ALERT_OUT_OF_STOCK = "OUT_OF_STOCK"
ALERT_LOW_STOCK = "LOW_STOCK"


class Product(db.Model):
    """
    Sellable item owned by a company.

    quantity is the company-level stock on hand. It only changes through
    stock_service (restock, manual movement, shipping) which appends a
    StockMovement for every change.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("company_id", "sku", name="uq_products_company_sku"),
        db.Index("ix_products_company_active", "company_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    sku = db.Column(db.String(64), nullable=False, index=True)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=10)
    max_stock = db.Column(db.Integer, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_stock_update = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    company = db.relationship("Company", backref=db.backref("products", lazy=True))
    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    created_by = db.relationship("User", foreign_keys=[created_by_id])

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} qty={self.quantity}>"

    @property
    def stock_status(self) -> str:
        if self.quantity <= 0:
            return "OUT_OF_STOCK"
        if self.quantity <= self.min_stock:
            return "LOW_STOCK"
        return "IN_STOCK"

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "price": to_number(self.price),
            "quantity": self.quantity,
            "minStock": self.min_stock,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "companyId": self.company_id,
            "name": self.name,
            "description": self.description,
            "sku": self.sku,
            "price": to_number(self.price),
            "quantity": self.quantity,
            "minStock": self.min_stock,
            "maxStock": self.max_stock,
            "isActive": self.is_active,
            "categoryId": self.category_id,
            "category": self.category.to_dict() if self.category else None,
            "createdById": self.created_by_id,
            "lastStockUpdate": to_utc_z(self.last_stock_update),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """
    Append-only log of stock changes. Rows are never updated or deleted
    outside of a full company purge.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    movement_type = db.Column(db.String(16), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    previous_stock = db.Column(db.Integer, nullable=False)
    new_stock = db.Column(db.Integer, nullable=False)
    reference_type = db.Column(db.String(16), nullable=False, default=REFERENCE_MANUAL)
    reference_id = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    product = db.relationship("Product", backref=db.backref("stock_movements", lazy=True))
    created_by = db.relationship("User", foreign_keys=[created_by_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "movementType": self.movement_type,
            "quantity": self.quantity,
            "previousStock": self.previous_stock,
            "newStock": self.new_stock,
            "referenceType": self.reference_type,
            "referenceId": self.reference_id,
            "notes": self.notes,
            "createdBy": self.created_by.to_summary() if self.created_by else None,
            "createdAt": to_utc_z(self.created_at),
        }


class StockAlert(db.Model):
    """Open/resolved low-stock alert persisted for a product."""
    __tablename__ = "stock_alerts"
    __table_args__ = (
        db.Index("ix_stock_alerts_product_resolved", "product_id", "is_resolved"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    alert_type = db.Column(db.String(16), nullable=False)
    message = db.Column(db.String(255), nullable=False)
    current_stock = db.Column(db.Integer, nullable=False)
    threshold_value = db.Column(db.Integer, nullable=False)
    is_resolved = db.Column(db.Boolean, nullable=False, default=False)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product", backref=db.backref("stock_alerts", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "alertType": self.alert_type,
            "message": self.message,
            "currentStock": self.current_stock,
            "thresholdValue": self.threshold_value,
            "isResolved": self.is_resolved,
            "resolvedAt": to_utc_z(self.resolved_at),
            "createdAt": to_utc_z(self.created_at),
        }


class RestockRecord(db.Model):
    __tablename__ = "restock_records"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "companyId": self.company_id,
            "userId": self.user_id,
            "quantity": self.quantity,
            "notes": self.notes,
            "createdAt": to_utc_z(self.created_at),
        }


class UserInventory(db.Model):
    """
    Stock held by an individual user after their orders ship.

    quantity_available = quantity_received - quantity_used
    """
    __tablename__ = "user_inventories"
    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", name="uq_user_inventories_user_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity_received = db.Column(db.Integer, nullable=False, default=0)
    quantity_used = db.Column(db.Integer, nullable=False, default=0)
    quantity_available = db.Column(db.Integer, nullable=False, default=0)
    last_updated = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("inventory", lazy=True))
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "productId": self.product_id,
            "quantityReceived": self.quantity_received,
            "quantityUsed": self.quantity_used,
            "quantityAvailable": self.quantity_available,
            "lastUpdated": to_utc_z(self.last_updated),
            "product": {
                **self.product.to_summary(),
                "description": self.product.description,
                "category": self.product.category.to_dict() if self.product.category else None,
            },
        }
