"""
Tests for PasswordResetCoordinator.

These tests cover:
- Identify returns prompts, or stable decoys for unknown accounts
- Verify / commit threshold checks
- Commit re-verifies and calls the credential provider exactly once
- Optional lockout accounting for reset failures
"""

import pytest

from models.failed_attempt import FailedAttempt
from security.attempt_ledger import SOURCE_RESET
from security.errors import LockedOut, ValidationError, VerificationFailed
from security.password_reset import PasswordResetCoordinator
from utils.identity import CredentialProvider

USER_EMAIL = "a@x.com"
NEW_PASSWORD = "BrandNewPass9"


def coordinator(services, credentials, count_failures=False):
    return PasswordResetCoordinator(
        services.questions,
        credentials,
        services.ledger,
        services.lockouts,
        secret_key="test-secret",
        count_failures_toward_lockout=count_failures,
    )


def wrong_answers():
    return [
        {"question_id": "first_pet_detail", "answer": "Rex"},
        {"question_id": "childhood_address", "answer": "Nowhere"},
        {"question_id": "first_concert", "answer": "None"},
    ]


# =============================================================================
# Identify
# =============================================================================

class TestIdentify:
    """Tests for the first reset step."""

    def test_known_user_gets_their_prompts(self, services, user_with_questions):
        challenge = services.reset.identify("  A@X.com ")

        assert challenge.email == USER_EMAIL
        assert challenge.status == "pending_verification"
        assert [q["question_id"] for q in challenge.questions] == [
            "first_pet_detail", "childhood_address", "first_concert",
        ]

    def test_unknown_user_gets_same_shape(self, services, user_with_questions):
        known = services.reset.identify(USER_EMAIL).to_dict()
        unknown = services.reset.identify("ghost@x.com").to_dict()

        assert set(known) == set(unknown)
        assert unknown["status"] == "pending_verification"
        assert len(unknown["questions"]) == len(known["questions"])
        for q in unknown["questions"]:
            assert set(q) == {"question_id", "prompt"}

    def test_larger_question_set_returns_same_count_as_unknown(self, services, user):
        services.questions.setup(USER_EMAIL, [
            {"question_id": "first_pet_detail", "answer": "Whiskers March"},
            {"question_id": "birth_hospital", "answer": "General Portland"},
            {"question_id": "dream_vacation", "answer": "Japan"},
            {"question_id": "unique_talent", "answer": "Juggling"},
        ])

        known = services.reset.identify(USER_EMAIL).questions
        unknown = services.reset.identify("ghost@x.com").questions

        assert len(known) == len(unknown) == 3
        assert [q["question_id"] for q in known] == ["first_pet_detail", "birth_hospital", "dream_vacation"]

    def test_questions_beyond_the_challenge_still_verify(self, services, user):
        services.questions.setup(USER_EMAIL, [
            {"question_id": "first_pet_detail", "answer": "Whiskers March"},
            {"question_id": "birth_hospital", "answer": "General Portland"},
            {"question_id": "dream_vacation", "answer": "Japan"},
            {"question_id": "unique_talent", "answer": "Juggling"},
        ])

        result = services.reset.verify(USER_EMAIL, [
            {"question_id": "first_pet_detail", "answer": "whiskers march"},
            {"question_id": "unique_talent", "answer": "juggling"},
        ])

        assert result["status"] == "verified"

    def test_decoys_are_stable_per_email(self, services):
        first = services.reset.identify("ghost@x.com").questions
        second = services.reset.identify("GHOST@x.com").questions

        assert first == second

    def test_user_without_questions_gets_decoys(self, services, user):
        challenge = services.reset.identify(USER_EMAIL)

        assert len(challenge.questions) == 3

    def test_invalid_email_is_rejected(self, services):
        with pytest.raises(ValidationError):
            services.reset.identify("not-an-email")


# =============================================================================
# Verify
# =============================================================================

class TestVerify:
    """Tests for the answer check step."""

    def test_correct_answers_verify(self, services, user_with_questions, correct_answers):
        result = services.reset.verify(USER_EMAIL, correct_answers)

        assert result == {"status": "verified", "email": USER_EMAIL}

    def test_wrong_answers_fail_generically(self, services, user_with_questions):
        with pytest.raises(VerificationFailed) as excinfo:
            services.reset.verify(USER_EMAIL, wrong_answers())

        assert "answer" in excinfo.value.message.lower()

    def test_unknown_email_fails_the_same_way(self, services, correct_answers):
        with pytest.raises(VerificationFailed):
            services.reset.verify("ghost@x.com", correct_answers)

    def test_failures_are_not_recorded_by_default(self, services, user_with_questions):
        with pytest.raises(VerificationFailed):
            services.reset.verify(USER_EMAIL, wrong_answers())

        assert FailedAttempt.query.count() == 0


# =============================================================================
# Commit
# =============================================================================

class TestCommit:
    """Tests for the final step."""

    def test_commit_updates_credential_once(self, services, user_with_questions,
                                            correct_answers, recording_provider):
        reset = coordinator(services, recording_provider)

        result = reset.commit(USER_EMAIL, correct_answers, NEW_PASSWORD, NEW_PASSWORD)

        assert result == {"status": "password_reset", "email": USER_EMAIL}
        assert recording_provider.updates == [(USER_EMAIL, NEW_PASSWORD)]

    def test_commit_without_prior_verify_still_checks_answers(self, services, user_with_questions,
                                                              recording_provider):
        reset = coordinator(services, recording_provider)

        with pytest.raises(VerificationFailed):
            reset.commit(USER_EMAIL, wrong_answers(), NEW_PASSWORD, NEW_PASSWORD)

        assert recording_provider.updates == []

    def test_verify_then_wrong_commit_is_refused(self, services, user_with_questions,
                                                 correct_answers, recording_provider):
        reset = coordinator(services, recording_provider)
        reset.verify(USER_EMAIL, correct_answers)

        with pytest.raises(VerificationFailed):
            reset.commit(USER_EMAIL, wrong_answers(), NEW_PASSWORD, NEW_PASSWORD)

        assert recording_provider.updates == []

    def test_password_mismatch(self, services, user_with_questions, correct_answers, recording_provider):
        reset = coordinator(services, recording_provider)

        with pytest.raises(ValidationError) as excinfo:
            reset.commit(USER_EMAIL, correct_answers, NEW_PASSWORD, NEW_PASSWORD + "x")

        assert "Passwords do not match" in excinfo.value.details
        assert recording_provider.updates == []

    def test_password_too_short(self, services, user_with_questions, correct_answers, recording_provider):
        reset = coordinator(services, recording_provider)

        with pytest.raises(ValidationError) as excinfo:
            reset.commit(USER_EMAIL, correct_answers, "short", "short")

        assert "Password must be at least 8 characters long" in excinfo.value.details
        assert recording_provider.updates == []

    def test_local_provider_changes_the_login_password(self, services, user_with_questions, correct_answers):
        services.reset.commit(USER_EMAIL, correct_answers, NEW_PASSWORD, NEW_PASSWORD)

        assert services.credentials.authenticate(USER_EMAIL, NEW_PASSWORD).email == USER_EMAIL

    def test_provider_failure_propagates(self, services, user_with_questions, correct_answers):
        class BrokenProvider(CredentialProvider):
            def update_credential(self, identity, new_password):
                raise RuntimeError("directory offline")

        reset = coordinator(services, BrokenProvider())

        with pytest.raises(RuntimeError):
            reset.commit(USER_EMAIL, correct_answers, NEW_PASSWORD, NEW_PASSWORD)


# =============================================================================
# Reset failures toward lockout
# =============================================================================

class TestResetLockoutAccounting:
    """Behaviour with RESET_FAILURES_COUNT_TOWARD_LOCKOUT switched on."""

    def test_failures_are_recorded_as_reset(self, services, user_with_questions, recording_provider):
        reset = coordinator(services, recording_provider, count_failures=True)

        with pytest.raises(VerificationFailed):
            reset.verify(USER_EMAIL, wrong_answers(), ip="10.0.0.9")

        attempt = FailedAttempt.query.one()
        assert attempt.source == SOURCE_RESET
        assert attempt.ip == "10.0.0.9"

    def test_repeated_failures_lock_the_identity(self, services, user_with_questions,
                                                 correct_answers, recording_provider):
        reset = coordinator(services, recording_provider, count_failures=True)
        for _ in range(5):
            with pytest.raises(VerificationFailed):
                reset.verify(USER_EMAIL, wrong_answers())

        with pytest.raises(LockedOut):
            reset.commit(USER_EMAIL, correct_answers, NEW_PASSWORD, NEW_PASSWORD)

        assert recording_provider.updates == []
        assert services.lockouts.check_locked(USER_EMAIL).locked is True
