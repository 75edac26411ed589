import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.failed_attempt import FailedAttempt
from security.errors import StorageError
from utils.clock import utcnow

logger = logging.getLogger(__name__)

SOURCE_LOGIN = "LOGIN"
SOURCE_RESET = "RESET"


class AttemptLedger:
    """Append-only record of failed authentication attempts per identity."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def record(self, identity: str, source: str = SOURCE_LOGIN, ip: Optional[str] = None) -> FailedAttempt:
        row = FailedAttempt(identity=identity, created_at=self._clock(), source=source, ip=ip)
        try:
            db.session.add(row)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error("Could not record failed attempt for %s: %s", identity, exc)
            raise StorageError() from exc
        return row

    def recent_attempts(self, identity: str, window_minutes: int,
                        since: Optional[datetime] = None) -> List[FailedAttempt]:
        """
        Attempts inside [now - window, now], oldest first.
        `since` narrows the lower bound further (exclusive) when given.
        """
        now = self._clock()
        lower = now - timedelta(minutes=window_minutes)

        try:
            q = (
                FailedAttempt.query
                .filter(FailedAttempt.identity == identity)
                .filter(FailedAttempt.created_at >= lower)
                .filter(FailedAttempt.created_at <= now)
            )
            if since is not None:
                q = q.filter(FailedAttempt.created_at > since)
            return q.order_by(FailedAttempt.created_at.asc(), FailedAttempt.id.asc()).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError() from exc

    def purge(self, identity: str) -> int:
        try:
            count = FailedAttempt.query.filter_by(identity=identity).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError() from exc
        return count

    def prune_older_than(self, cutoff: datetime) -> int:
        try:
            count = FailedAttempt.query.filter(FailedAttempt.created_at < cutoff).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError() from exc
        if count:
            logger.info("Pruned %d failed attempt records older than %s", count, cutoff.isoformat())
        return count
