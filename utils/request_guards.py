import secrets
from functools import wraps
from flask import current_app, request

from security.errors import AuthenticationFailed, RateLimited, ValidationError
from security.rate_limit import client_ip
from utils.audit import log_event
from utils.services import get_services


def json_body() -> dict:
    """Request JSON as a dict; a missing body is empty, anything but an object is rejected."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def throttle(scope: str):
    """
    Usage: @throttle("reset")
    Counts calls per scope + client ip against the shared RateLimiter.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            limiter = get_services().limiter
            key = f"{scope}:{client_ip()}"
            if limiter.is_limited(key):
                retry_after = limiter.retry_after(key)
                log_event("RATE_LIMITED", metadata={"scope": scope, "retry_after": retry_after})
                raise RateLimited(retry_after)
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def require_admin_token(fn):
    """Admin endpoints need the X-Admin-Token header to match ADMIN_API_TOKEN."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("ADMIN_API_TOKEN")
        supplied = request.headers.get("X-Admin-Token") or ""
        if not expected or not secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
            raise AuthenticationFailed("Admin authentication required")
        return fn(*args, **kwargs)
    return wrapper
