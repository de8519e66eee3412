import logging
import os

import click
from flask import Flask

import auth
import views
from errors import ValidationError, register_error_handlers
from models import db

TRUTHY = {"1", "true", "yes", "on"}


def _database_url():
    url = os.environ.get("DATABASE_URL")

    # LOCAL FALLBACK
    if not url:
        url = "sqlite:///job_board.db"

    # Fix postgres:// issue
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def create_app(config=None):
    # ================= APP =================
    app = Flask(__name__)
    app.config["PREFERRED_URL_SCHEME"] = "https"

    # ================= SECRET KEY =================
    app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key")

    # ================= SESSION CONFIG =================
    app.config.update(
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        SESSION_COOKIE_SECURE=os.environ.get("RENDER") == "true",
    )

    # ================= DATABASE CONFIG =================
    app.config["SQLALCHEMY_DATABASE_URI"] = _database_url()
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # ================= FEATURE FLAGS =================
    app.config["SEARCH_REQUIRES_AUTH"] = (
        os.environ.get("SEARCH_REQUIRES_AUTH", "").lower() in TRUTHY
    )
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO")

    if config:
        app.config.update(config)

    # ================= LOGGING =================
    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db.init_app(app)
    register_error_handlers(app)
    app.register_blueprint(auth.bp)
    app.register_blueprint(views.bp)
    register_commands(app)

    with app.app_context():
        db.create_all()
        auth.ensure_roles()
        app.logger.info(
            "Job board ready on %s",
            db.engine.url.render_as_string(hide_password=True),
        )

    return app


# ================= CLI =================
def register_commands(app):
    @app.cli.command("seed-roles")
    def seed_roles():
        """Create the admin, employer and user roles if missing."""
        auth.ensure_roles()
        click.echo("Roles ready")

    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("name")
    @click.password_option()
    def create_admin(email, name, password):
        """Create an account holding the admin role."""
        try:
            auth.create_user(name, email, password, "admin")
        except ValidationError:
            raise click.ClickException("User already exists")
        click.echo(f"Admin {email} created")


# ================= RUN =================
if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port)
