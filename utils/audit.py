import json
import logging
from flask import has_request_context, request
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.audit_log import AuditLog
from security.errors import StorageError

logger = logging.getLogger(__name__)


def log_event(action: str, identity=None, metadata=None):
    ip = None
    user_agent = None
    if has_request_context():
        ip = request.remote_addr
        user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        identity=identity,
        action=action,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata) if metadata else None
    )
    try:
        db.session.add(row)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError() from exc


def log_committed_event(action: str, identity=None, metadata=None):
    """
    For events written after the state change is already committed: a failed
    audit write is logged, the caller's success response stands.
    """
    try:
        log_event(action, identity=identity, metadata=metadata)
    except StorageError:
        logger.error("Audit write failed for %s (identity=%s)", action, identity)
