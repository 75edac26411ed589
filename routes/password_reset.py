from flask import Blueprint, jsonify

from security.errors import VerificationFailed
from security.input_validation import normalize_email
from security.rate_limit import client_ip
from utils.audit import log_committed_event, log_event
from utils.request_guards import json_body, throttle
from utils.services import get_services


reset_bp = Blueprint("password_reset", __name__, url_prefix="/password-reset")


@reset_bp.post("/identify")
@throttle("reset")
def identify():
    data = json_body()
    challenge = get_services().reset.identify(data.get("email"))
    return jsonify(challenge.to_dict()), 200


@reset_bp.post("/verify")
@throttle("reset")
def verify():
    data = json_body()
    try:
        result = get_services().reset.verify(data.get("email"), data.get("answers"), ip=client_ip())
    except VerificationFailed:
        log_event("RESET_VERIFY_FAIL", identity=normalize_email(data.get("email")))
        raise

    log_event("RESET_VERIFY_OK", identity=result["email"])
    return jsonify(result), 200


@reset_bp.post("/commit")
@throttle("reset")
def commit():
    data = json_body()
    try:
        result = get_services().reset.commit(
            data.get("email"),
            data.get("answers"),
            data.get("new_password"),
            data.get("confirm_password"),
            ip=client_ip(),
        )
    except VerificationFailed:
        log_event("RESET_COMMIT_FAIL", identity=normalize_email(data.get("email")))
        raise

    log_committed_event("PASSWORD_RESET", identity=result["email"])
    return jsonify(message="Password updated", **result), 200
