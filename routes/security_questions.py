from flask import Blueprint, jsonify

from routes.auth import authenticate_with_lockout
from security.input_validation import validate_email
from security.question_catalog import SECURITY_QUESTIONS
from utils.audit import log_committed_event
from utils.request_guards import json_body, throttle
from utils.services import get_services


questions_bp = Blueprint("security_questions", __name__, url_prefix="/security-questions")


@questions_bp.get("/catalog")
def catalog():
    return jsonify(questions=SECURITY_QUESTIONS), 200


@questions_bp.post("")
@throttle("security_questions")
def setup_questions():
    data = json_body()
    email = validate_email(data.get("email"))
    password = data.get("password") or ""

    # re-authenticate before changing the recovery factor
    user = authenticate_with_lockout(email, password)

    stored = get_services().questions.setup(user.email, data.get("questions"))
    log_committed_event("SECURITY_QUESTIONS_SET", identity=user.email, metadata={"count": len(stored)})
    return jsonify(message="Security questions saved", questions=stored), 200
