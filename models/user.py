from datetime import datetime
from models.db import db

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    # identity key: trimmed + lowercased email, never changed after creation
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)

    # owned by the credential provider, the security core never reads it
    password_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    password_changed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    security_questions = db.relationship(
        "SecurityQuestion",
        back_populates="user",
        order_by="SecurityQuestion.position",
        cascade="all, delete-orphan",
    )
