# Overview: Request decorators for API routes.

from functools import wraps

from flask import g, jsonify

from .middleware import load_session_context


def require_auth(f):
    """
    Require an authenticated session.

    Sets on flask.g:
    - g.current_user: the authenticated User
    - g.company_id: the session's company (may be None for ADMIN)
    - g.role: the session's role
    - g.session_context: the full SessionContext

    Returns 401 when the token is missing, unknown, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if load_session_context() is None:
            return jsonify({"error": "Unauthorized"}), 401
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require the session role to be one of roles.

    An insufficient role is answered like a missing session (401); the route
    never runs and nothing is mutated.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            context = load_session_context()
            if context is None or context.role not in roles:
                return jsonify({"error": "Unauthorized"}), 401
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_company(f):
    """Require the session to carry a company (directors always do)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if getattr(g, "company_id", None) is None:
            return jsonify({"error": "Unauthorized"}), 401
        return f(*args, **kwargs)

    return decorated_function
