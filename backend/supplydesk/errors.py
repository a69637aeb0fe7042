# Overview: JSON error handlers shared by every blueprint.

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from .extensions import db
from .services.order_service import InsufficientStockError
from .services.tenant_service import TenantAccessError
from .validation import ConflictError, NotFoundError, ValidationError


def register_error_handlers(app) -> None:
    """
    Map domain exceptions to {"error": ...} responses.

    Routes catch their expected errors explicitly; these handlers cover
    anything that escapes. Unexpected exceptions are logged with traceback
    and answered with a generic 500.
    """

    @app.errorhandler(InsufficientStockError)
    def handle_insufficient_stock(e):
        db.session.rollback()
        return jsonify(e.to_dict()), 400

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        db.session.rollback()
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(ConflictError)
    def handle_conflict_error(e):
        db.session.rollback()
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(NotFoundError)
    @app.errorhandler(TenantAccessError)
    def handle_not_found(e):
        db.session.rollback()
        return jsonify({"error": str(e) or "Not found"}), 404

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500
