from .db import db
from .user import User
from .audit_log import AuditLog
from .failed_attempt import FailedAttempt
from .lockout import LockoutRecord, LockoutCounter
from .security_question import SecurityQuestion
