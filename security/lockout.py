import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.lockout import LockoutCounter, LockoutRecord
from security.attempt_ledger import AttemptLedger
from security.errors import LockedOut, StorageError
from utils.clock import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockStatus:
    locked: bool
    unlock_at: Optional[datetime] = None
    remaining_minutes: int = 0
    lockout_count: int = 0

    def to_dict(self) -> dict:
        return {
            "locked": self.locked,
            "unlock_at": self.unlock_at.isoformat() + "Z" if self.unlock_at else None,
            "remaining_minutes": self.remaining_minutes,
            "lockout_count": self.lockout_count,
        }


UNLOCKED = LockStatus(locked=False)


class LockoutManager:
    """
    Progressive lockout on top of the attempt ledger.

    An identity is locked iff a LockoutRecord exists and its unlock_at is in
    the future. Expired records are removed lazily by check_locked(); nothing
    sweeps them in the background.

    The nth lock lasts min(base * multiplier ** (n - 1), max) minutes. The
    escalation count lives in LockoutCounter so it survives record expiry and
    only resets through clear().
    """

    def __init__(
        self,
        ledger: AttemptLedger,
        max_failed_attempts: int = 5,
        attempt_window_minutes: int = 60,
        base_minutes: int = 15,
        multiplier: int = 2,
        max_minutes: int = 120,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ledger = ledger
        self.max_failed_attempts = max_failed_attempts
        self.attempt_window_minutes = attempt_window_minutes
        self.base_minutes = base_minutes
        self.multiplier = multiplier
        self.max_minutes = max_minutes
        self._clock = clock

    @classmethod
    def from_config(cls, config, ledger: AttemptLedger, clock: Callable[[], datetime] = utcnow):
        return cls(
            ledger,
            max_failed_attempts=config.get("LOCKOUT_MAX_FAILED_ATTEMPTS", 5),
            attempt_window_minutes=config.get("LOCKOUT_ATTEMPT_WINDOW_MINUTES", 60),
            base_minutes=config.get("LOCKOUT_BASE_MINUTES", 15),
            multiplier=config.get("LOCKOUT_MULTIPLIER", 2),
            max_minutes=config.get("LOCKOUT_MAX_MINUTES", 120),
            clock=clock,
        )

    def lockout_minutes(self, lockout_count: int) -> int:
        exponent = max(lockout_count, 1) - 1
        return min(self.base_minutes * self.multiplier ** exponent, self.max_minutes)

    def evaluate(self, identity: str) -> LockStatus:
        """Lock the identity if its recent failures reached the threshold."""
        current = self.check_locked(identity)
        if current.locked:
            # failures made while locked never extend the lock
            return current

        counter = self._counter(identity)
        since = counter.last_unlock_at if counter else None
        attempts = self.ledger.recent_attempts(identity, self.attempt_window_minutes, since=since)

        if len(attempts) >= self.max_failed_attempts:
            return self.lock(identity, len(attempts))
        return UNLOCKED

    def lock(self, identity: str, failed_count: int) -> LockStatus:
        now = self._clock()
        try:
            counter = self._counter(identity)
            if counter is None:
                counter = LockoutCounter(identity=identity, lockout_count=0)
                db.session.add(counter)
            counter.lockout_count += 1

            minutes = self.lockout_minutes(counter.lockout_count)
            unlock_at = now + timedelta(minutes=minutes)

            record = LockoutRecord.query.filter_by(identity=identity).first()
            if record is None:
                record = LockoutRecord(identity=identity)
                db.session.add(record)
            record.locked_at = now
            record.unlock_at = unlock_at
            record.failed_attempt_count = failed_count
            record.lockout_count = counter.lockout_count

            counter.last_locked_at = now
            counter.last_unlock_at = unlock_at
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Could not persist lockout for %s: %s", identity, exc)
            raise StorageError() from exc

        logger.warning(
            "Account locked: %s for %d minutes (lockout #%d, %d failed attempts)",
            identity, minutes, record.lockout_count, failed_count,
        )
        return LockStatus(
            locked=True,
            unlock_at=unlock_at,
            remaining_minutes=minutes,
            lockout_count=record.lockout_count,
        )

    def check_locked(self, identity: str) -> LockStatus:
        try:
            record = LockoutRecord.query.filter_by(identity=identity).first()
            if record is None:
                return UNLOCKED

            now = self._clock()
            if now >= record.unlock_at:
                db.session.delete(record)
                db.session.commit()
                return UNLOCKED
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError() from exc

        remaining = (record.unlock_at - now).total_seconds()
        return LockStatus(
            locked=True,
            unlock_at=record.unlock_at,
            remaining_minutes=math.ceil(remaining / 60),
            lockout_count=record.lockout_count,
        )

    def ensure_unlocked(self, identity: str) -> None:
        status = self.check_locked(identity)
        if status.locked:
            raise LockedOut(status.remaining_minutes, status.lockout_count)

    def clear(self, identity: str) -> bool:
        """
        Successful login or admin unlock: drop the lock, the escalation
        count and the ledger entries. Returns True if a lock was removed.
        """
        try:
            removed = LockoutRecord.query.filter_by(identity=identity).delete()
            LockoutCounter.query.filter_by(identity=identity).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError() from exc
        self.ledger.purge(identity)
        return bool(removed)

    def cleanup_expired(self) -> int:
        """Storage hygiene only; check_locked already treats these as unlocked."""
        try:
            count = LockoutRecord.query.filter(LockoutRecord.unlock_at <= self._clock()).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError() from exc
        return count

    def status(self, identity: str) -> dict:
        lock = self.check_locked(identity)
        counter = self._counter(identity)
        if lock.locked:
            # attempts after a lock started do not count toward the next one
            recent = 0
        else:
            since = counter.last_unlock_at if counter else None
            recent = len(self.ledger.recent_attempts(identity, self.attempt_window_minutes, since=since))
        return {
            "identity": identity,
            "recent_failed_attempts": recent,
            "lockout_count": counter.lockout_count if counter else 0,
            "lock": lock.to_dict(),
        }

    def policy(self) -> dict:
        return {
            "max_failed_attempts": self.max_failed_attempts,
            "attempt_window_minutes": self.attempt_window_minutes,
            "base_lockout_minutes": self.base_minutes,
            "progressive_multiplier": self.multiplier,
            "max_lockout_minutes": self.max_minutes,
        }

    def _counter(self, identity: str) -> Optional[LockoutCounter]:
        try:
            return LockoutCounter.query.filter_by(identity=identity).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError() from exc
