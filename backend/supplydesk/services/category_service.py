# Overview: Service-layer operations for categories.

from __future__ import annotations

from ..extensions import db
from ..models import Category
from ..validation import ConflictError, ValidationError


def list_categories() -> list[dict]:
    categories = (
        db.session.query(Category)
        .filter(Category.is_active.is_(True))
        .order_by(Category.name.asc())
        .all()
    )
    return [c.to_dict() for c in categories]


def create_category(*, name: str, description: str | None = None, company_id: int | None = None) -> dict:
    """Category names are unique system-wide; a duplicate creates nothing."""
    name = (name or "").strip() if isinstance(name, str) else ""
    if not name:
        raise ValidationError("Category name is required")

    existing = db.session.query(Category.id).filter(Category.name == name).first()
    if existing:
        raise ConflictError("Category name already exists")

    category = Category(
        name=name,
        description=description.strip() if isinstance(description, str) else None,
        company_id=company_id,
    )
    db.session.add(category)
    db.session.commit()
    return category.to_dict()
