from datetime import datetime
from models.db import db

class FailedAttempt(db.Model):
    __tablename__ = "failed_attempts"

    id = db.Column(db.Integer, primary_key=True)

    identity = db.Column(db.String(255), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    # LOGIN or RESET
    source = db.Column(db.String(20), nullable=False, default="LOGIN")
    ip = db.Column(db.String(64), nullable=True)
