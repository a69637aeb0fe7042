from __future__ import annotations

from ..extensions import db
from ..validation import to_number
from supplydesk.time_utils import to_utc_z, utcnow

ROLE_ADMIN = "ADMIN"
ROLE_DIRECTOR = "COMPANY_DIRECTOR"
ROLE_USER = "USER"
ROLES = (ROLE_ADMIN, ROLE_DIRECTOR, ROLE_USER)


class User(db.Model):
    """
    Account that logs in with email + password.

    Every user belongs to one company (ADMIN accounts may too). The role is a
    single fixed value; there is no per-permission table.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_company_role", "company_id", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default=ROLE_USER)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    credit_limit = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    credit_used = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    company = db.relationship("Company", backref=db.backref("users", lazy=True, order_by="User.id"))

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def to_dict(self) -> dict:
        """Public representation; password_hash never leaves the model."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "isActive": self.is_active,
            "companyId": self.company_id,
            "companyName": self.company.name if self.company else None,
            "creditLimit": to_number(self.credit_limit),
            "creditUsed": to_number(self.credit_used),
            "createdAt": to_utc_z(self.created_at),
            "lastLoginAt": to_utc_z(self.last_login_at),
        }

    def to_summary(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email}


class SessionToken(db.Model):
    """
    Server-side session record.

    The plaintext token is handed to the client once; only its SHA-256 hash
    is stored. company_id and role are captured at login and stay fixed for
    the session lifetime.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True, index=True)
    role = db.Column(db.String(32), nullable=False)

    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(128), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "companyId": self.company_id,
            "role": self.role,
            "createdAt": to_utc_z(self.created_at),
            "lastUsedAt": to_utc_z(self.last_used_at),
            "expiresAt": to_utc_z(self.expires_at),
        }
