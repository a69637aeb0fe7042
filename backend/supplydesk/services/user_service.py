# Overview: Service-layer operations for a director managing the USER accounts of their company.

from __future__ import annotations

from ..extensions import db
from ..models import User, ROLE_USER
from ..validation import ConflictError, ValidationError, parse_text, require_fields
from . import auth_service, maintenance_service, session_service
from .tenant_service import require_member_in_company


def list_members(*, company_id: int) -> list[dict]:
    members = (
        db.session.query(User)
        .filter(User.company_id == company_id, User.role == ROLE_USER)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )
    return [
        {
            **m.to_dict(),
            "_count": {
                "orderRequests": len(m.order_requests),
                "payments": len(m.payments),
                "expenses": len(m.expenses),
            },
        }
        for m in members
    ]


def create_member(*, company_id: int, payload: dict) -> dict:
    require_fields(payload, "name", "email", "password")
    user = auth_service.create_user(
        name=payload["name"],
        email=payload["email"],
        password=payload["password"],
        role=ROLE_USER,
        company_id=company_id,
    )
    return user.to_dict()


def update_member(*, company_id: int, member_id: int, payload: dict) -> dict:
    member = require_member_in_company(member_id, company_id)

    if "name" in payload:
        member.name = parse_text(payload["name"], "name")

    if "email" in payload:
        email = parse_text(payload["email"], "email")
        if auth_service.email_in_use(email, exclude_user_id=member.id):
            raise ConflictError("User with this email already exists")
        member.email = auth_service.normalize_email(email)

    if payload.get("password"):
        member.password_hash = auth_service.hash_password(payload["password"])

    if "isActive" in payload:
        if not isinstance(payload["isActive"], bool):
            raise ValidationError("isActive must be a boolean")
        member.is_active = payload["isActive"]

    db.session.commit()

    if payload.get("password") or member.is_active is False:
        session_service.revoke_all_user_sessions(member.id, reason="Account updated by director")

    return member.to_dict()


def delete_member(*, company_id: int, member_id: int) -> bool:
    member = require_member_in_company(member_id, company_id)
    maintenance_service.purge_user(member)
    db.session.commit()
    return True
