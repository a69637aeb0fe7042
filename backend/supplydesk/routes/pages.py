# Overview: Landing endpoints for page paths; the middleware decides who reaches them.

from flask import Blueprint, g, jsonify, request

pages_bp = Blueprint("pages", __name__)


@pages_bp.get("/health")
def health():
    return jsonify({"status": "ok"})


@pages_bp.get("/auth/signin")
def signin_page():
    return jsonify({
        "page": "signin",
        "login": "/api/auth/login",
        "callbackUrl": request.args.get("callbackUrl", "/dashboard"),
    })


@pages_bp.get("/dashboard")
def dashboard_page():
    return jsonify({"page": "dashboard", "role": g.role, "stats": "/dashboard/stats"})


@pages_bp.get("/admin")
def admin_page():
    return jsonify({"page": "admin", "role": g.role, "companies": "/api/admin/companies"})


@pages_bp.get("/director")
def director_page():
    return jsonify({"page": "director", "role": g.role, "dashboard": "/api/director/dashboard"})
