# Overview: Shared dashboard statistics for every signed-in role.

from flask import Blueprint, g, jsonify

from ..decorators import require_auth
from ..services import reporting_service

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


@dashboard_bp.get("/stats")
@require_auth
def dashboard_stats_route():
    """Global counts for ADMIN; the caller's own activity for everyone else."""
    return jsonify(reporting_service.dashboard_stats(g.current_user))
