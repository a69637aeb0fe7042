# Overview: Request gate that resolves the session and enforces path-level role routing.

"""
Authorization middleware (registered as a before_request hook).

1. Public paths pass through untouched.
2. The session token is read from "Authorization: Bearer <token>" or the
   session cookie and resolved once per request onto flask.g.
3. No valid session: JSON API paths answer 401, page paths redirect to
   /auth/signin?callbackUrl=<path>.
4. Page paths are routed by role through page_redirect_for().

Role checks for individual API routes live in decorators.require_role.
"""

from __future__ import annotations

from urllib.parse import urlencode

from flask import current_app, g, jsonify, redirect, request

from .models import ROLE_ADMIN, ROLE_DIRECTOR
from .services import session_service
from .services.session_service import SessionContext

PUBLIC_PREFIXES = ("/api/auth/", "/auth/", "/static/")
PUBLIC_PATHS = {"/api/auth", "/favicon.ico", "/health"}
API_PREFIXES = ("/api/",)
API_PATHS = {"/dashboard/stats"}

SIGNIN_PATH = "/auth/signin"


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


def is_api_path(path: str) -> bool:
    return path in API_PATHS or path.startswith(API_PREFIXES)


def page_redirect_for(path: str, role: str | None) -> str | None:
    """
    Role routing table for page paths. Returns the redirect target, or None
    when the request may proceed.
    """
    if path == "/":
        return "/dashboard"
    if path.startswith("/admin") and role != ROLE_ADMIN:
        return "/dashboard"
    if path.startswith("/director") and role != ROLE_DIRECTOR:
        return "/dashboard"
    if path == "/dashboard":
        if role == ROLE_ADMIN:
            return "/admin"
        if role == ROLE_DIRECTOR:
            return "/director"
    return None


def extract_token() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token
    return request.cookies.get(current_app.config["SESSION_COOKIE_NAME"]) or None


def load_session_context() -> SessionContext | None:
    """Resolve (once per request) and publish the session on flask.g."""
    if "session_context" in g:
        return g.session_context

    token = extract_token()
    context = session_service.validate_session(token) if token else None

    g.session_context = context
    if context is not None:
        g.current_user = context.user
        g.company_id = context.company_id
        g.role = context.role
    return context


SESSION_KEYS = ("session_context", "current_user", "company_id", "role")


def reset_session_context() -> None:
    for key in SESSION_KEYS:
        g.pop(key, None)


def authorize_request():
    reset_session_context()
    if request.method == "OPTIONS":
        return None

    path = request.path
    if is_public_path(path):
        return None

    context = load_session_context()

    if context is None:
        if is_api_path(path):
            return jsonify({"error": "Unauthorized"}), 401
        return redirect(f"{SIGNIN_PATH}?{urlencode({'callbackUrl': path})}")

    if is_api_path(path):
        return None

    target = page_redirect_for(path, context.role)
    if target is not None and target != path:
        return redirect(target)
    return None


def register_middleware(app) -> None:
    app.before_request(authorize_request)
