# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Users log in with email + password. Passwords are hashed with bcrypt; the
cost factor comes from BCRYPT_ROUNDS (12 unless overridden, e.g. in tests).
Emails are unique across all companies because they are the login identifier.
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, ROLES
from ..validation import ValidationError, ConflictError, parse_text
from supplydesk.time_utils import utcnow

MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """Validate then hash password with bcrypt."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check. Malformed hashes never match."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    return parse_text(email, "email").lower()


def email_in_use(email: str, *, exclude_user_id: int | None = None) -> bool:
    query = db.session.query(User.id).filter(User.email == normalize_email(email))
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


def create_user(
    *,
    name: str,
    email: str,
    password: str,
    role: str,
    company_id: int | None,
    commit: bool = True,
) -> User:
    """
    Create a user with a bcrypt password hash.

    Raises:
        ValidationError: unknown role or weak password
        ConflictError: email already registered
    """
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")
    if email_in_use(email):
        raise ConflictError("User with this email already exists")

    user = User(
        name=parse_text(name, "name"),
        email=normalize_email(email),
        password_hash=hash_password(password),
        role=role,
        company_id=company_id,
        is_active=True,
    )
    db.session.add(user)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Returns the active User whose credentials match, else None.
    Updates last_login_at on success.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
