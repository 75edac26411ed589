"""
Security-question password reset: identify -> verify -> commit.

No step trusts state carried over from an earlier one. verify() tells the
caller it may move on, but commit() checks the answers again from scratch
before the credential provider is called. identify() answers the same way
whether or not the email belongs to an account.
"""
import hashlib
import hmac
import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional

from security.attempt_ledger import SOURCE_RESET, AttemptLedger
from security.errors import VerificationFailed
from security.input_validation import validate_email, validate_new_password
from security.lockout import LockoutManager
from security.question_catalog import SECURITY_QUESTIONS
from security.security_questions import SecurityQuestionStore
from utils.identity import CredentialProvider

logger = logging.getLogger(__name__)

PENDING_VERIFICATION = "pending_verification"
VERIFIED = "verified"
PASSWORD_RESET = "password_reset"


@dataclass
class ResetChallenge:
    email: str
    questions: List[dict] = field(default_factory=list)
    status: str = PENDING_VERIFICATION

    def to_dict(self) -> dict:
        return {"status": self.status, "email": self.email, "questions": self.questions}


class PasswordResetCoordinator:
    def __init__(
        self,
        questions: SecurityQuestionStore,
        credentials: CredentialProvider,
        ledger: AttemptLedger,
        lockouts: LockoutManager,
        secret_key: str,
        count_failures_toward_lockout: bool = False,
        challenge_size: Optional[int] = None,
    ):
        self.questions = questions
        self.credentials = credentials
        self.ledger = ledger
        self.lockouts = lockouts
        self._secret = secret_key.encode("utf-8")
        self.count_failures_toward_lockout = count_failures_toward_lockout
        # every identify response carries exactly this many prompts
        self.challenge_size = challenge_size or questions.min_setup

    def identify(self, email) -> ResetChallenge:
        identity = validate_email(email)
        prompts = self.questions.questions_for(identity)[: self.challenge_size]
        if len(prompts) < self.challenge_size:
            # unknown account or no questions configured: same response shape
            prompts = self._decoy_questions(identity)
        return ResetChallenge(email=identity, questions=prompts)

    def verify(self, email, answered, ip: Optional[str] = None) -> dict:
        identity = validate_email(email)
        self._check_answers(identity, answered, ip)
        return {"status": VERIFIED, "email": identity}

    def commit(self, email, answered, new_password, confirm_password, ip: Optional[str] = None) -> dict:
        identity = validate_email(email)
        validate_new_password(new_password, confirm_password)

        # re-verified here regardless of any earlier verify() call
        self._check_answers(identity, answered, ip)

        self.credentials.update_credential(identity, new_password)
        logger.info("Password reset through security questions for %s", identity)
        return {"status": PASSWORD_RESET, "email": identity}

    def _check_answers(self, identity: str, answered, ip: Optional[str]) -> None:
        if self.count_failures_toward_lockout:
            self.lockouts.ensure_unlocked(identity)

        if self.questions.verify(identity, answered):
            return

        if self.count_failures_toward_lockout:
            self.ledger.record(identity, source=SOURCE_RESET, ip=ip)
            self.lockouts.evaluate(identity)
        raise VerificationFailed()

    def _decoy_questions(self, identity: str) -> List[dict]:
        # stable per email so repeated probes see the same prompts
        seed = hmac.new(self._secret, identity.encode("utf-8"), hashlib.sha256).digest()
        picks = random.Random(seed).sample(SECURITY_QUESTIONS, self.challenge_size)
        return [{"question_id": q["id"], "prompt": q["question"]} for q in picks]
