from flask import Blueprint, jsonify

from security.errors import AuthenticationFailed, LockedOut
from security.input_validation import validate_email, validate_new_password
from security.rate_limit import client_ip
from utils.audit import log_committed_event, log_event
from utils.request_guards import json_body, throttle
from utils.services import get_services


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def authenticate_with_lockout(email: str, password: str):
    """
    Login-path check shared by every endpoint that takes the primary password.
    Refuses locked identities, records failures and locks once the threshold
    is reached, clears the ledger on success.
    """
    svc = get_services()

    status = svc.lockouts.check_locked(email)
    if status.locked:
        log_event("LOGIN_LOCKED", identity=email, metadata={"remaining_minutes": status.remaining_minutes})
        raise LockedOut(status.remaining_minutes, status.lockout_count)

    try:
        user = svc.credentials.authenticate(email, password)
    except AuthenticationFailed:
        # unknown emails are tracked too, so lockouts don't reveal which accounts exist
        svc.ledger.record(email, ip=client_ip())
        status = svc.lockouts.evaluate(email)
        log_event("LOGIN_FAIL", identity=email, metadata={"locked_now": status.locked})
        if status.locked:
            raise LockedOut(
                status.remaining_minutes,
                status.lockout_count,
                message="Too many failed attempts. Account locked.",
            )
        raise

    svc.lockouts.clear(email)
    return user


@auth_bp.post("/register")
@throttle("register")
def register():
    data = json_body()
    email = validate_email(data.get("email"))
    password = data.get("password") or ""
    validate_new_password(password, data.get("confirm_password", password))

    user = get_services().credentials.create_user(email, password)
    log_committed_event("REGISTER_SUCCESS", identity=user.email)

    return jsonify(message="Registered successfully"), 201


@auth_bp.post("/login")
@throttle("login")
def login():
    data = json_body()
    email = validate_email(data.get("email"))
    password = data.get("password") or ""

    user = authenticate_with_lockout(email, password)
    log_committed_event("LOGIN_SUCCESS", identity=user.email)
    return jsonify(message="Login OK", email=user.email), 200
