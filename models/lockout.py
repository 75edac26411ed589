from models.db import db

class LockoutRecord(db.Model):
    """Present only while the identity is locked."""
    __tablename__ = "lockout_records"

    id = db.Column(db.Integer, primary_key=True)
    identity = db.Column(db.String(255), unique=True, nullable=False, index=True)

    locked_at = db.Column(db.DateTime, nullable=False)
    unlock_at = db.Column(db.DateTime, nullable=False)

    failed_attempt_count = db.Column(db.Integer, nullable=False)
    lockout_count = db.Column(db.Integer, nullable=False, default=1)

    __table_args__ = (
        db.CheckConstraint("unlock_at > locked_at", name="ck_lockout_unlock_after_lock"),
    )


class LockoutCounter(db.Model):
    """Escalation memory that outlives expired lockout records."""
    __tablename__ = "lockout_counters"

    id = db.Column(db.Integer, primary_key=True)
    identity = db.Column(db.String(255), unique=True, nullable=False, index=True)

    lockout_count = db.Column(db.Integer, nullable=False, default=0)
    last_locked_at = db.Column(db.DateTime, nullable=True)
    last_unlock_at = db.Column(db.DateTime, nullable=True)
