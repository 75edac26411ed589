import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as account_security.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "account_security.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Progressive lockout
    LOCKOUT_MAX_FAILED_ATTEMPTS = int(os.getenv("LOCKOUT_MAX_FAILED_ATTEMPTS", "5"))
    LOCKOUT_ATTEMPT_WINDOW_MINUTES = int(os.getenv("LOCKOUT_ATTEMPT_WINDOW_MINUTES", "60"))
    LOCKOUT_BASE_MINUTES = int(os.getenv("LOCKOUT_BASE_MINUTES", "15"))
    LOCKOUT_MULTIPLIER = int(os.getenv("LOCKOUT_MULTIPLIER", "2"))
    LOCKOUT_MAX_MINUTES = int(os.getenv("LOCKOUT_MAX_MINUTES", "120"))

    # In-memory call-volume throttle, keyed per endpoint + client ip
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "60"))
    # Number of reverse proxies in front of the app whose X-Forwarded-For is trusted
    TRUSTED_PROXY_HOPS = int(os.getenv("TRUSTED_PROXY_HOPS", "0"))

    # Security questions
    SECURITY_QUESTIONS_MIN_SETUP = 3
    SECURITY_QUESTIONS_MAX_SETUP = 5
    SECURITY_QUESTIONS_MIN_CORRECT = 2
    SECURITY_ANSWER_MIN_LEN = int(os.getenv("SECURITY_ANSWER_MIN_LEN", "1"))
    SECURITY_ANSWER_MAX_LEN = 200

    # Password reset
    RESET_PASSWORD_MIN_LEN = 8
    RESET_PASSWORD_MAX_LEN = 128
    # Route failed reset verifications through the login lockout ledger
    RESET_FAILURES_COUNT_TOWARD_LOCKOUT = _env_bool("RESET_FAILURES_COUNT_TOWARD_LOCKOUT", "false")

    # Retention for ledger rows (flask cleanup-security-records)
    SECURITY_RECORD_RETENTION_HOURS = int(os.getenv("SECURITY_RECORD_RETENTION_HOURS", "24"))

    # Admin endpoints (set in environment for production)
    ADMIN_API_TOKEN = os.getenv("ADMIN_API_TOKEN")

    # bcrypt cost for answer hashes and local passwords
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Basic app settings
    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    ADMIN_API_TOKEN = "test-admin-token"
    BCRYPT_ROUNDS = 4
    # Keep the throttle out of the way unless a test tightens it
    RATE_LIMIT_MAX_REQUESTS = 1000
