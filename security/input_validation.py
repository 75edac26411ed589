"""
Strict inbound field validation.

Every check either returns the accepted value or raises ValidationError.
Nothing is stripped, escaped or rewritten to make bad input pass; the only
transformation applied is identity normalization of emails (trim + lowercase).
"""
import re
from typing import Dict, Iterable, List, Optional, Tuple

from flask import current_app

from security.errors import ValidationError

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# markup / script injection markers, rejected anywhere in free text
_DANGEROUS = [
    (re.compile(r"[<>]"), "angle brackets"),
    (re.compile(r"javascript\s*:", re.IGNORECASE), "javascript: URLs"),
    (re.compile(r"\bon\w+\s*=", re.IGNORECASE), "inline event handlers"),
]

_DEFAULTS = {
    "EMAIL_MAX_LEN": 255,
    "SECURITY_ANSWER_MIN_LEN": 1,
    "SECURITY_ANSWER_MAX_LEN": 200,
    "RESET_PASSWORD_MIN_LEN": 8,
    "RESET_PASSWORD_MAX_LEN": 128,
}


def _cfg(name: str):
    try:
        return current_app.config.get(name, _DEFAULTS[name])
    except RuntimeError:
        return _DEFAULTS[name]


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def validate_email(value) -> str:
    """Return the identity key for `value` or raise."""
    if not isinstance(value, str):
        raise ValidationError("Invalid email")
    email = normalize_email(value)
    if not email or len(email) > int(_cfg("EMAIL_MAX_LEN")) or not _EMAIL.match(email):
        raise ValidationError("Invalid email")
    check_safe_text(email, "Email")
    return email


def check_safe_text(value: str, field: str) -> None:
    for pattern, label in _DANGEROUS:
        if pattern.search(value):
            raise ValidationError(f"{field} contains disallowed content ({label})")


def validate_text(value, field: str, min_len: int = 1, max_len: int = 255) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    if len(value.strip()) < min_len:
        if min_len <= 1:
            raise ValidationError(f"{field} is required")
        raise ValidationError(f"{field} must be at least {min_len} characters")
    if len(value) > max_len:
        raise ValidationError(f"{field} must be at most {max_len} characters")
    check_safe_text(value, field)
    return value


def validate_answer(value, field: str = "Answer") -> str:
    return validate_text(
        value,
        field,
        min_len=int(_cfg("SECURITY_ANSWER_MIN_LEN")),
        max_len=int(_cfg("SECURITY_ANSWER_MAX_LEN")),
    )


def _question_id(entry) -> str:
    qid = entry.get("question_id")
    if not isinstance(qid, str) or not qid.strip():
        raise ValidationError("Each entry needs a question_id")
    check_safe_text(qid, "question_id")
    return qid


def validate_answered_set(entries, min_count: int) -> List[Tuple[str, str]]:
    """
    Accepts a list of {"question_id", "answer"} dicts.
    Entries left blank are unanswered and skipped; at least `min_count`
    answered entries are required.
    """
    if not isinstance(entries, list):
        raise ValidationError("answers must be a list")

    answered: List[Tuple[str, str]] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValidationError("Each answer must be an object")
        qid = _question_id(entry)
        answer = entry.get("answer")
        if answer is None or (isinstance(answer, str) and not answer.strip()):
            continue
        answered.append((qid, validate_answer(answer)))

    if len(answered) < min_count:
        raise ValidationError(f"Please answer at least {min_count} security questions")
    return answered


def validate_question_setup(entries, catalog: Dict[str, str], min_count: int,
                            max_count: Optional[int] = None) -> List[Tuple[str, str, str]]:
    """Return [(question_id, prompt, answer)] for a setup request."""
    if not isinstance(entries, list):
        raise ValidationError("questions must be a list")
    if len(entries) < min_count:
        raise ValidationError(f"Please answer at least {min_count} security questions")
    if max_count is not None and len(entries) > max_count:
        raise ValidationError(f"Please answer at most {max_count} security questions")

    errors: List[str] = []
    seen = set()
    out: List[Tuple[str, str, str]] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValidationError("Each question must be an object")
        qid = _question_id(entry)
        if qid not in catalog:
            errors.append(f"Invalid question ID: {qid}")
            continue
        if qid in seen:
            errors.append(f"Duplicate question ID: {qid}")
            continue
        seen.add(qid)

        prompt = catalog[qid]
        try:
            answer = validate_answer(entry.get("answer"), f'Answer for "{prompt}"')
        except ValidationError as exc:
            errors.append(exc.message)
            continue
        out.append((qid, prompt, answer))

    if errors:
        raise ValidationError("Security questions are invalid", details=errors)
    return out


def validate_new_password(password, confirmation) -> str:
    """
    Length and confirmation checks only. The characters of a password are
    never inspected for markup; strength rules belong to the credential provider.
    """
    if not isinstance(password, str) or not isinstance(confirmation, str):
        raise ValidationError("Password must be a string")

    min_len = int(_cfg("RESET_PASSWORD_MIN_LEN"))
    max_len = int(_cfg("RESET_PASSWORD_MAX_LEN"))

    errors: List[str] = []
    if len(password) < min_len:
        errors.append(f"Password must be at least {min_len} characters long")
    if len(password) > max_len:
        errors.append(f"Password must be at most {max_len} characters")
    if password != confirmation:
        errors.append("Passwords do not match")

    if errors:
        raise ValidationError("Password does not meet policy", details=errors)
    return password


def require_fields(data: dict, names: Iterable[str]) -> None:
    missing = [n for n in names if data.get(n) in (None, "")]
    if missing:
        raise ValidationError("Missing required fields", details=missing)
