from .health import health_bp
from .auth import auth_bp
from .security_questions import questions_bp
from .password_reset import reset_bp
from .admin import admin_bp
