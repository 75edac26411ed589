import logging

from flask import Flask, jsonify
from config import Config
from routes import health_bp, auth_bp, questions_bp, reset_bp, admin_bp

from models import db
from flask_migrate import Migrate
from werkzeug.middleware.proxy_fix import ProxyFix
from security.errors import AccountSecurityError
from utils.clock import utcnow
from utils.services import build_services

logger = logging.getLogger(__name__)


def create_app(config_object=Config, clock=utcnow, credential_provider=None):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Client address comes from X-Forwarded-For only behind known proxies
    hops = app.config.get("TRUSTED_PROXY_HOPS", 0)
    if hops:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(questions_bp)
    app.register_blueprint(reset_bp)
    app.register_blueprint(admin_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Ledger, lockouts, throttle, questions and reset flow share one clock
    build_services(app, clock=clock, credentials=credential_provider)

    @app.errorhandler(AccountSecurityError)
    def _security_error(exc):
        if exc.status_code >= 500:
            logger.error("%s: %s", type(exc).__name__, exc.__cause__ or exc.message)
        return jsonify(**exc.payload()), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Cache-Control"] = "no-store"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
import click
from datetime import timedelta
from security.input_validation import validate_email
from utils.audit import log_event
from utils.services import get_services

def _identity_arg(email: str) -> str:
    try:
        return validate_email(email)
    except AccountSecurityError as exc:
        raise click.ClickException(exc.message)


def register_cli(app):
    @app.cli.command("unlock-account")
    @click.argument("email")
    def unlock_account(email):
        """Clear the lockout and failed attempts for EMAIL."""
        identity = _identity_arg(email)
        was_locked = get_services().lockouts.clear(identity)
        log_event("ADMIN_UNLOCK", identity=identity, metadata={"was_locked": was_locked, "by": "cli"})
        click.echo(f"{identity} unlocked" if was_locked else f"{identity} was not locked; attempts cleared")

    @app.cli.command("cleanup-security-records")
    @click.option("--hours", type=int, default=None, help="Retention window (defaults to SECURITY_RECORD_RETENTION_HOURS).")
    def cleanup_security_records(hours):
        """Prune old failed attempts and expired lockout records."""
        svc = get_services()
        hours = hours if hours is not None else app.config.get("SECURITY_RECORD_RETENTION_HOURS", 24)
        cutoff = svc.ledger.now() - timedelta(hours=hours)

        attempts = svc.ledger.prune_older_than(cutoff)
        lockouts = svc.lockouts.cleanup_expired()
        click.echo(f"Removed {attempts} failed attempts and {lockouts} expired lockouts")

    @app.cli.command("create-user")
    @click.argument("email")
    @click.password_option()
    def create_user(email, password):
        """Register EMAIL with the local credential provider."""
        identity = _identity_arg(email)
        try:
            get_services().credentials.create_user(identity, password)
        except AccountSecurityError as exc:
            raise click.ClickException(exc.message)
        click.echo(f"{identity} created")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
