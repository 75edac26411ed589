"""
Shared fixtures for the account security test suite.

- App built with TestingConfig (in-memory SQLite, cheap bcrypt)
- A controllable clock shared by ledger, lockouts, throttle and reset flow
- Users with and without security questions
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Make the flat app modules importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from app import create_app  # noqa: E402
from config import TestingConfig  # noqa: E402
from models import db  # noqa: E402
from utils.identity import CredentialProvider  # noqa: E402
from utils.services import get_services  # noqa: E402


USER_EMAIL = "a@x.com"
USER_PASSWORD = "CorrectHorse1"

QUESTION_SETUP = [
    {"question_id": "first_pet_detail", "answer": "Whiskers March"},
    {"question_id": "childhood_address", "answer": "1847 Maple Grove Lane"},
    {"question_id": "first_concert", "answer": "Coldplay with my cousin Jessica"},
]


# =============================================================================
# Clock
# =============================================================================

class FakeClock:
    """Callable returning a naive UTC datetime that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 15, 12, 0, 0))


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app(clock):
    app = create_app(TestingConfig, clock=clock)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services()


@pytest.fixture
def admin_headers() -> dict:
    return {"X-Admin-Token": TestingConfig.ADMIN_API_TOKEN}


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture
def user(services):
    """Registered user without security questions."""
    return services.credentials.create_user(USER_EMAIL, USER_PASSWORD)


@pytest.fixture
def user_with_questions(services, user):
    """Registered user with three security questions configured."""
    services.questions.setup(user.email, QUESTION_SETUP)
    return user


@pytest.fixture
def correct_answers() -> list:
    return [dict(entry) for entry in QUESTION_SETUP]


# =============================================================================
# Credential Provider Double
# =============================================================================

class RecordingCredentialProvider(CredentialProvider):
    """Remembers update_credential calls instead of touching any store."""

    def __init__(self):
        self.updates = []

    def authenticate(self, identity, password):
        raise NotImplementedError

    def update_credential(self, identity, new_password):
        self.updates.append((identity, new_password))


@pytest.fixture
def recording_provider() -> RecordingCredentialProvider:
    return RecordingCredentialProvider()
