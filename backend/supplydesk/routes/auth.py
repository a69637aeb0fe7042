# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /api/auth/login   email + password -> session token (also set as cookie)
- POST /api/auth/logout  revoke the current session
- GET  /api/auth/session current user for the presented token
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..middleware import extract_token, load_session_context
from ..services import auth_service, session_service
from ..services.security_service import log_security_event
from ..validation import json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info and session token on success. The token is accepted
    in the Authorization header (Bearer) or the session cookie.
    """
    data = json_object(request.get_json(silent=True))
    email = data.get("email")
    password = data.get("password")

    if not (isinstance(email, str) and email.strip() and isinstance(password, str) and password):
        return jsonify({"error": "email and password required"}), 400

    try:
        user = auth_service.authenticate(email, password)

        if not user:
            log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                reason=f"Invalid credentials for {auth_service.normalize_email(email)}",
            )
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        response = jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful",
        })
        response.set_cookie(
            current_app.config["SESSION_COOKIE_NAME"],
            token,
            max_age=current_app.config["SESSION_MAX_AGE_DAYS"] * 24 * 3600,
            httponly=True,
            samesite="Lax",
            secure=not (current_app.debug or current_app.testing),
        )
        return response, 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the presented session token and clear the cookie."""
    token = extract_token()
    if not token:
        return jsonify({"error": "Unauthorized"}), 401

    if not session_service.revoke_session(token, reason="User logout"):
        return jsonify({"error": "Invalid or expired token"}), 401

    response = jsonify({"message": "Logout successful"})
    response.delete_cookie(current_app.config["SESSION_COOKIE_NAME"])
    return response, 200


@auth_bp.get("/session")
def session_route():
    context = load_session_context()
    if context is None:
        return jsonify({"error": "Unauthorized"}), 401
    return jsonify({
        "user": g.current_user.to_dict(),
        "session": context.session.to_dict(),
    }), 200
