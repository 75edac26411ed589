import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.user import User
from security.errors import AuthenticationFailed, CredentialUpdateError, StorageError, ValidationError
from security.hashing import DEFAULT_ROUNDS, burn_verify, hash_password, verify_password
from security.input_validation import normalize_email
from utils.clock import utcnow

logger = logging.getLogger(__name__)


class SqlIdentityStore:
    """Identity lookups over the users table."""

    def lookup(self, email: str) -> Optional[User]:
        identity = normalize_email(email)
        if not identity:
            return None
        try:
            return User.query.filter_by(email=identity).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError() from exc


class CredentialProvider:
    """
    Owner of the primary password. The security core only ever calls
    authenticate() on the login path and update_credential() at reset commit.
    """

    def authenticate(self, identity: str, password: str) -> User:
        raise NotImplementedError

    def update_credential(self, identity: str, new_password: str) -> None:
        raise NotImplementedError


class LocalCredentialProvider(CredentialProvider):
    """bcrypt-backed provider storing the hash on the users row."""

    def __init__(self, identity_store: SqlIdentityStore, rounds: int = DEFAULT_ROUNDS):
        self.identity_store = identity_store
        self.rounds = rounds

    def create_user(self, identity: str, password: str) -> User:
        if self.identity_store.lookup(identity) is not None:
            raise ValidationError("Email already registered")
        user = User(email=identity, password_hash=hash_password(password, rounds=self.rounds))
        try:
            db.session.add(user)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError() from exc
        return user

    def authenticate(self, identity: str, password: str) -> User:
        user = self.identity_store.lookup(identity)
        if user is None:
            # same bcrypt cost as a real check so timing does not reveal unknown emails
            burn_verify(password, self.rounds)
            raise AuthenticationFailed()
        if not verify_password(password, user.password_hash):
            raise AuthenticationFailed()
        return user

    def update_credential(self, identity: str, new_password: str) -> None:
        user = self.identity_store.lookup(identity)
        if user is None:
            raise CredentialUpdateError()
        try:
            user.password_hash = hash_password(new_password, rounds=self.rounds)
            user.password_changed_at = utcnow()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Credential update failed for %s: %s", identity, exc)
            raise CredentialUpdateError() from exc
