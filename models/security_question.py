from datetime import datetime
from models.db import db

class SecurityQuestion(db.Model):
    __tablename__ = "security_questions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    question_id = db.Column(db.String(64), nullable=False)
    prompt = db.Column(db.String(255), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)

    # bcrypt over the normalized answer; the plaintext answer is never stored
    answer_hash = db.Column(db.String(128), nullable=False)
    salt = db.Column(db.String(64), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user = db.relationship("User", back_populates="security_questions")

    __table_args__ = (
        db.UniqueConstraint("user_id", "question_id", name="uq_user_security_question"),
    )
