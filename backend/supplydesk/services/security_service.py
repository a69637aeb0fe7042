# Overview: Service-layer operations for security auditing; writes SecurityEvent rows.

from __future__ import annotations

from flask import current_app, has_request_context, request

from ..extensions import db
from ..models import SecurityEvent


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    company_id: int | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    event_type examples:
    - LOGIN_FAILED
    - LOGIN_SUCCEEDED
    - LOGOUT
    - CROSS_TENANT_ACCESS_DENIED

    The event is committed immediately so it survives a failed request. That
    commit covers the whole request session: callers log before staging
    changes or after committing them.
    """
    ip_address = None
    user_agent = None
    if has_request_context():
        ip_address = request.remote_addr
        user_agent = request.headers.get("User-Agent")
        if resource is None:
            resource = request.path
        if action is None:
            action = request.method

    event = SecurityEvent(
        user_id=user_id,
        company_id=company_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.session.add(event)
    db.session.commit()

    if not success:
        current_app.logger.warning(
            "Security event %s user=%s company=%s resource=%s reason=%s",
            event_type, user_id, company_id, resource, reason,
        )
    return event
