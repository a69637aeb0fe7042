# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management

Tokens are cryptographically random, stored only as a SHA-256 hash, and
expire after SESSION_MAX_AGE_DAYS (30 days by default). Sessions capture the
user's company_id and role at login; both stay fixed for the session lifetime.
Logout revokes the record so the token cannot be replayed.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from supplydesk.time_utils import utcnow


@dataclass
class SessionContext:
    """Identity and tenant context of an authenticated request."""
    user: User
    session: SessionToken
    company_id: int | None
    role: str


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _max_age() -> timedelta:
    return timedelta(days=current_app.config.get("SESSION_MAX_AGE_DAYS", 30))


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    if not user.is_active:
        raise ValueError("User account is not active")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        company_id=user.company_id,
        role=user.role,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _max_age(),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if:
    - Token is unknown, expired, or revoked
    - User account is deactivated (the session is revoked as a side effect)
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    user = session.user
    if not user or not user.is_active:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = "User account deactivated"
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        user=user,
        session=session,
        company_id=session.company_id,
        role=session.role,
    )


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Revoke session token. Returns False if no live session matches."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason

    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    """
    Revoke all active sessions for a user (password change, deactivation).

    Returns count of sessions revoked.
    """
    now = utcnow()
    count = db.session.query(SessionToken).filter_by(
        user_id=user_id,
        is_revoked=False
    ).update(
        {
            SessionToken.is_revoked: True,
            SessionToken.revoked_at: now,
            SessionToken.revoked_reason: reason,
        },
        synchronize_session=False,
    )
    db.session.commit()
    return count


def cleanup_expired_sessions(*, retention_days: int = 30) -> int:
    """
    Delete sessions that are expired or revoked and older than retention_days.

    Returns count of sessions deleted.
    """
    now = utcnow()
    cutoff = now - timedelta(days=retention_days)

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True)
        ),
        SessionToken.created_at < cutoff
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
