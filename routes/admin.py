from flask import Blueprint, jsonify, request, current_app

from models.audit_log import AuditLog
from security.input_validation import validate_email
from utils.audit import log_committed_event
from utils.request_guards import json_body, require_admin_token
from utils.services import get_services

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.get("/accounts/<email>/security")
@require_admin_token
def account_security_status(email):
    identity = validate_email(email)
    svc = get_services()
    status = svc.lockouts.status(identity)
    status["security_questions_configured"] = svc.questions.has_questions(identity)
    return jsonify(status), 200


@admin_bp.post("/accounts/<email>/unlock")
@require_admin_token
def unlock_account(email):
    identity = validate_email(email)
    data = json_body()

    was_locked = get_services().lockouts.clear(identity)
    log_committed_event("ADMIN_UNLOCK", identity=identity, metadata={"was_locked": was_locked, "by": data.get("admin")})
    return jsonify(message="Account unlocked", was_locked=was_locked), 200


@admin_bp.get("/security-policy")
@require_admin_token
def security_policy():
    svc = get_services()
    return jsonify(
        lockout=svc.lockouts.policy(),
        rate_limit={
            "max_requests": svc.limiter.max_requests,
            "window_seconds": svc.limiter.window_seconds,
        },
        security_questions={
            "min_setup": svc.questions.min_setup,
            "max_setup": svc.questions.max_setup,
            "min_correct": svc.questions.min_correct,
        },
        features={
            "brute_force_protection": True,
            "progressive_lockout": True,
            "automatic_unlock": True,
            "admin_override": True,
            "attempt_logging": True,
            "ip_tracking": True,
            "reset_failures_count_toward_lockout": svc.reset.count_failures_toward_lockout,
            "retention_hours": current_app.config.get("SECURITY_RECORD_RETENTION_HOURS", 24),
        },
    ), 200


@admin_bp.get("/audit-logs")
@require_admin_token
def list_audit_logs():
    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 500))

    action = request.args.get("action")
    identity = request.args.get("identity")

    q = AuditLog.query
    if action:
        q = q.filter(AuditLog.action == action)
    if identity:
        q = q.filter(AuditLog.identity == identity.strip().lower())

    rows = q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()
    return jsonify(logs=[
        {
            "id": r.id,
            "created_at": r.timestamp.isoformat() if r.timestamp else None,
            "identity": r.identity,
            "action": r.action,
            "ip": r.ip,
            "user_agent": r.user_agent,
            "metadata": r.metadata_json,
        }
        for r in rows
    ]), 200
