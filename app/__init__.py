from __future__ import annotations

from pathlib import Path

import click
from flask import Flask

from app.core.auth import auth_bp
from app.core.config import Config
from app.core.errors import envelope, register_error_handlers
from app.core.extensions import db, migrate
from app.core.mail import init_mailer
from app.core.models import User, seed_demo_data
from app.core.tokens import init_token_auth
from app.records import records_bp
from app.reporting import reporting_bp


def create_app(config_object: type[Config] | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    db.init_app(app)
    migrate.init_app(app, db)
    init_token_auth(app)
    init_mailer(app)
    register_error_handlers(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(records_bp)
    app.register_blueprint(reporting_bp)

    register_cli(app)
    register_routes(app)
    return app


def register_routes(app: Flask) -> None:
    @app.get("/health")
    def health():
        return envelope({"status": "ok", "environment": app.config.get("APP_ENV")})

    @app.get("/api")
    def index():
        return envelope(
            {
                "name": "EMI Verify API",
                "endpoints": {
                    "auth": "/api/auth",
                    "insurance_cases": "/api/insurance-cases",
                    "document_verifications": "/api/document-verifications",
                    "analytics": "/api/analytics",
                    "export": "/api/export",
                },
            }
        )


def register_cli(app: Flask) -> None:
    @app.cli.command("seed-demo")
    @click.option("--reset", is_flag=True, help="Delete existing data before seed.")
    def seed_demo(reset: bool) -> None:
        """Seed demo data."""
        if reset:
            db.drop_all()
            db.create_all()
        if not User.query.first():
            seed_demo_data(db.session)
            click.echo("Demo data seeded.")
        else:
            click.echo("Seed skipped: existing users found.")

    @app.cli.command("import-csv")
    @click.option(
        "--kind",
        type=click.Choice(["insurance-cases", "document-verifications"]),
        required=True,
        help="Record type contained in the file.",
    )
    @click.option("--path", "csv_path", type=click.Path(exists=True, dir_okay=False), required=True)
    def import_csv_command(kind: str, csv_path: str) -> None:
        """Import records from a CSV file (export titles or field names as headers)."""
        from app.records.services import import_csv, record_kind

        text = Path(csv_path).read_text(encoding="utf-8-sig")
        try:
            result = import_csv(record_kind(kind), text)
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc
        for error in result.errors:
            click.echo(f"row {error['row']}: {error['error']}", err=True)
        click.echo(f"Imported {kind}: successful={len(result.created)} failed={len(result.errors)}")

    @app.cli.command("create-user")
    @click.option("--full-name", required=True)
    @click.option("--email", required=True)
    @click.password_option()
    def create_user(full_name: str, email: str, password: str) -> None:
        """Create an already verified user."""
        from app.core.accounts import create_verified_user

        try:
            user = create_verified_user(full_name, email, password)
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"User created: {user.email}")
