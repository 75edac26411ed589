"""
Tests for SecurityQuestionStore and answer hashing.

These tests cover:
- Setup rules (minimum count, catalog ids, duplicates)
- Only prompts are ever returned
- Threshold-based verification
- Salted, normalized answer hashes
"""

import pytest

from models.security_question import SecurityQuestion
from security.errors import NotFound, ValidationError
from security.hashing import generate_salt, hash_answer, verify_answer

USER_EMAIL = "a@x.com"


def answers(*pairs):
    return [{"question_id": qid, "answer": answer} for qid, answer in pairs]


# =============================================================================
# Answer Hashing
# =============================================================================

class TestAnswerHashing:
    """Tests for hash_answer / verify_answer."""

    def test_hash_is_not_plaintext(self):
        salt = generate_salt(4)
        hashed = hash_answer("Whiskers March", salt)

        assert "whiskers" not in hashed.lower()
        assert hashed.startswith("$2b$")

    def test_same_answer_different_salts_differ(self):
        assert hash_answer("Blue", generate_salt(4)) != hash_answer("Blue", generate_salt(4))

    def test_normalization_trims_and_case_folds(self):
        hashed = hash_answer("  Whiskers March ", generate_salt(4))

        assert verify_answer("whiskers march", hashed) is True
        assert verify_answer("WHISKERS MARCH", hashed) is True
        assert verify_answer("whiskers april", hashed) is False

    def test_long_answers_are_not_truncated(self):
        base = "a" * 100
        hashed = hash_answer(base + "x", generate_salt(4))

        assert verify_answer(base + "y", hashed) is False

    def test_malformed_hash_does_not_verify(self):
        assert verify_answer("anything", "not-a-bcrypt-hash") is False


# =============================================================================
# Setup
# =============================================================================

class TestSetup:
    """Tests for SecurityQuestionStore.setup."""

    def test_setup_stores_hashes_and_salts_only(self, services, user_with_questions):
        rows = SecurityQuestion.query.filter_by(user_id=user_with_questions.id).all()

        assert len(rows) == 3
        for row in rows:
            assert row.salt
            assert row.answer_hash.startswith(row.salt)
            assert "whiskers" not in row.answer_hash.lower()

    def test_setup_requires_three_questions(self, services, user, correct_answers):
        with pytest.raises(ValidationError):
            services.questions.setup(USER_EMAIL, correct_answers[:2])

    def test_setup_allows_at_most_five_questions(self, services, user):
        entries = answers(
            ("first_pet_detail", "Rex"),
            ("birth_hospital", "General"),
            ("dream_vacation", "Japan"),
            ("unique_talent", "Juggling"),
            ("first_concert", "Muse"),
            ("childhood_address", "Elm Street"),
        )

        with pytest.raises(ValidationError) as excinfo:
            services.questions.setup(USER_EMAIL, entries)

        assert excinfo.value.message == "Please answer at most 5 security questions"
        assert services.questions.questions_for(USER_EMAIL) == []

    def test_setup_rejects_empty_answer(self, services, user, correct_answers):
        entries = [dict(e) for e in correct_answers]
        entries[1]["answer"] = "   "

        with pytest.raises(ValidationError) as excinfo:
            services.questions.setup(USER_EMAIL, entries)

        assert len(excinfo.value.details) == 1

    def test_setup_rejects_unknown_and_duplicate_ids(self, services, user):
        entries = answers(
            ("first_pet_detail", "Whiskers"),
            ("first_pet_detail", "Rex"),
            ("favourite_colour", "Blue"),
        )

        with pytest.raises(ValidationError) as excinfo:
            services.questions.setup(USER_EMAIL, entries)

        assert "Duplicate question ID: first_pet_detail" in excinfo.value.details
        assert "Invalid question ID: favourite_colour" in excinfo.value.details

    def test_setup_rejects_markup_in_answers(self, services, user, correct_answers):
        entries = [dict(e) for e in correct_answers]
        entries[0]["answer"] = "<script>alert(1)</script>"

        with pytest.raises(ValidationError):
            services.questions.setup(USER_EMAIL, entries)

    def test_setup_unknown_identity(self, services, correct_answers):
        with pytest.raises(NotFound):
            services.questions.setup("ghost@x.com", correct_answers)

    def test_setup_replaces_previous_set(self, services, user_with_questions):
        replacement = answers(
            ("first_pet_detail", "Rex June"),
            ("birth_hospital", "General Portland"),
            ("dream_vacation", "Japan"),
            ("unique_talent", "Juggling"),
        )

        services.questions.setup(USER_EMAIL, replacement)

        ids = [q["question_id"] for q in services.questions.questions_for(USER_EMAIL)]
        assert ids == ["first_pet_detail", "birth_hospital", "dream_vacation", "unique_talent"]
        assert services.questions.verify(USER_EMAIL, answers(("first_pet_detail", "rex june"), ("dream_vacation", "japan")))


# =============================================================================
# Questions For
# =============================================================================

class TestQuestionsFor:
    """Tests for SecurityQuestionStore.questions_for."""

    def test_returns_prompts_in_setup_order(self, services, user_with_questions, correct_answers):
        questions = services.questions.questions_for(USER_EMAIL)

        assert [q["question_id"] for q in questions] == [e["question_id"] for e in correct_answers]
        for q in questions:
            assert set(q) == {"question_id", "prompt"}

    def test_unknown_identity_has_no_questions(self, services):
        assert services.questions.questions_for("ghost@x.com") == []
        assert services.questions.has_questions("ghost@x.com") is False


# =============================================================================
# Verify
# =============================================================================

class TestVerify:
    """Threshold-based verification."""

    def test_two_right_one_wrong_passes(self, services, user_with_questions):
        result = services.questions.verify(USER_EMAIL, answers(
            ("first_pet_detail", "whiskers march"),
            ("childhood_address", "1847 maple grove lane"),
            ("first_concert", "Taylor Swift alone"),
        ))

        assert result is True

    def test_one_right_fails(self, services, user_with_questions):
        result = services.questions.verify(USER_EMAIL, answers(
            ("first_pet_detail", "whiskers march"),
            ("childhood_address", "wrong street"),
            ("first_concert", "wrong concert"),
        ))

        assert result is False

    def test_all_three_right_passes(self, services, user_with_questions, correct_answers):
        assert services.questions.verify(USER_EMAIL, correct_answers) is True

    def test_unanswered_entries_are_skipped(self, services, user_with_questions):
        result = services.questions.verify(USER_EMAIL, answers(
            ("first_pet_detail", "Whiskers March"),
            ("childhood_address", ""),
            ("first_concert", "coldplay with my cousin jessica"),
        ))

        assert result is True

    def test_same_question_answered_twice_counts_once(self, services, user_with_questions):
        result = services.questions.verify(USER_EMAIL, answers(
            ("first_pet_detail", "Whiskers March"),
            ("first_pet_detail", "Whiskers March"),
        ))

        assert result is False

    def test_unknown_question_ids_do_not_count(self, services, user_with_questions):
        result = services.questions.verify(USER_EMAIL, answers(
            ("first_pet_detail", "Whiskers March"),
            ("birth_hospital", "Whiskers March"),
        ))

        assert result is False

    def test_fewer_than_two_answers_is_a_validation_error(self, services, user_with_questions):
        with pytest.raises(ValidationError):
            services.questions.verify(USER_EMAIL, answers(("first_pet_detail", "Whiskers March")))

    def test_unknown_identity_never_verifies(self, services, correct_answers):
        assert services.questions.verify("ghost@x.com", [dict(e) for e in correct_answers]) is False
