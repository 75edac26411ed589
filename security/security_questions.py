import logging
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.security_question import SecurityQuestion
from security.errors import NotFound, StorageError
from security.hashing import DEFAULT_ROUNDS, burn_verify, generate_salt, hash_answer, verify_answer
from security.input_validation import validate_answered_set, validate_question_setup
from security.question_catalog import PROMPTS
from utils.identity import SqlIdentityStore

logger = logging.getLogger(__name__)


class SecurityQuestionStore:
    """
    Per-user recovery questions. Only salted hashes of normalized answers
    are stored; prompts are copied from the catalog at setup time.
    """

    def __init__(self, identity_store: SqlIdentityStore, min_setup: int = 3, max_setup: int = 5,
                 min_correct: int = 2, rounds: int = DEFAULT_ROUNDS, catalog: Dict[str, str] = None):
        self.identity_store = identity_store
        self.min_setup = min_setup
        self.max_setup = max_setup
        self.min_correct = min_correct
        self.rounds = rounds
        self.catalog = catalog or PROMPTS

    @classmethod
    def from_config(cls, config, identity_store: SqlIdentityStore):
        return cls(
            identity_store,
            min_setup=config.get("SECURITY_QUESTIONS_MIN_SETUP", 3),
            max_setup=config.get("SECURITY_QUESTIONS_MAX_SETUP", 5),
            min_correct=config.get("SECURITY_QUESTIONS_MIN_CORRECT", 2),
            rounds=config.get("BCRYPT_ROUNDS", DEFAULT_ROUNDS),
        )

    def setup(self, identity: str, questions) -> List[dict]:
        """Replace the identity's question set. Returns the stored prompts."""
        entries = validate_question_setup(questions, self.catalog, self.min_setup, self.max_setup)

        user = self.identity_store.lookup(identity)
        if user is None:
            raise NotFound("User not found")

        rows = []
        for position, (qid, prompt, answer) in enumerate(entries):
            salt = generate_salt(self.rounds)
            rows.append(SecurityQuestion(
                question_id=qid,
                prompt=prompt,
                position=position,
                salt=salt,
                answer_hash=hash_answer(answer, salt),
            ))

        try:
            # flush the deletes first so re-used question ids don't collide
            user.security_questions.clear()
            db.session.flush()
            user.security_questions.extend(rows)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError() from exc

        logger.info("Security questions configured for %s (%d questions)", user.email, len(rows))
        return [{"question_id": r.question_id, "prompt": r.prompt} for r in rows]

    def questions_for(self, identity: str) -> List[dict]:
        """Prompts only, in setup order; empty for unknown identities."""
        user = self.identity_store.lookup(identity)
        if user is None:
            return []
        return [{"question_id": q.question_id, "prompt": q.prompt} for q in user.security_questions]

    def has_questions(self, identity: str) -> bool:
        return bool(self.questions_for(identity))

    def verify(self, identity: str, answered) -> bool:
        """
        True iff at least `min_correct` distinct questions were answered
        correctly. Wrong or unknown extra answers do not count against it.
        """
        answers = validate_answered_set(answered, self.min_correct)

        user = self.identity_store.lookup(identity)
        stored = {q.question_id: q for q in user.security_questions} if user else {}

        matched = set()
        for qid, answer in answers:
            question = stored.get(qid)
            if question is None:
                burn_verify(answer, self.rounds)
                continue
            if verify_answer(answer, question.answer_hash):
                matched.add(qid)

        return len(matched) >= self.min_correct
