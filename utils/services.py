from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from flask import current_app

from security.attempt_ledger import AttemptLedger
from security.lockout import LockoutManager
from security.password_reset import PasswordResetCoordinator
from security.rate_limit import RateLimiter
from security.security_questions import SecurityQuestionStore
from utils.clock import utcnow
from utils.identity import CredentialProvider, LocalCredentialProvider, SqlIdentityStore

EXTENSION_KEY = "account_security"


@dataclass
class AccountSecurity:
    identities: SqlIdentityStore
    credentials: CredentialProvider
    ledger: AttemptLedger
    lockouts: LockoutManager
    limiter: RateLimiter
    questions: SecurityQuestionStore
    reset: PasswordResetCoordinator


def build_services(app, clock: Callable[[], datetime] = utcnow,
                   credentials: CredentialProvider = None) -> AccountSecurity:
    config = app.config
    identities = SqlIdentityStore()
    if credentials is None:
        credentials = LocalCredentialProvider(identities, rounds=config.get("BCRYPT_ROUNDS", 12))

    ledger = AttemptLedger(clock=clock)
    lockouts = LockoutManager.from_config(config, ledger, clock=clock)
    questions = SecurityQuestionStore.from_config(config, identities)

    services = AccountSecurity(
        identities=identities,
        credentials=credentials,
        ledger=ledger,
        lockouts=lockouts,
        limiter=RateLimiter.from_config(config, clock=clock),
        questions=questions,
        reset=PasswordResetCoordinator(
            questions,
            credentials,
            ledger,
            lockouts,
            secret_key=config["SECRET_KEY"],
            count_failures_toward_lockout=config.get("RESET_FAILURES_COUNT_TOWARD_LOCKOUT", False),
        ),
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> AccountSecurity:
    return current_app.extensions[EXTENSION_KEY]
