import os
import click
from flask import current_app
from flask.cli import with_appcontext
from flask_migrate import upgrade as alembic_upgrade, stamp as alembic_stamp, migrate as alembic_migrate

from models import db
from models.user import User
from app.utils.db import transactional
from app.utils.jwt import create_access_token


def _assert_safe_for_upgrade():
    # Prevent accidental prod upgrades unless explicitly allowed
    env = (current_app.config.get("ENV") or "").lower()
    app_env = (os.getenv("APP_ENV") or "").lower()
    if app_env == "production" or env == "production":
        if (os.getenv("ALLOW_DB_MIGRATIONS") or "").lower() not in ("1", "true", "yes"):
            raise click.ClickException("Refusing to run DB migration in production without ALLOW_DB_MIGRATIONS=true")


@click.command("db-migrate-safe")
@click.option("-m", "--message", default="auto migration", help="Migration message")
@with_appcontext
def db_migrate_safe(message):
    """Generate a new migration script from current models."""
    alembic_migrate(message=message)
    click.echo("Migration script generated.")


@click.command("db-upgrade-safe")
@with_appcontext
def db_upgrade_safe():
    """Apply migrations to the configured database."""
    _assert_safe_for_upgrade()
    alembic_upgrade()
    click.echo("Database upgraded.")


@click.command("db-stamp-safe")
@click.option("--revision", default="head", help="Revision to stamp, default 'head'")
@with_appcontext
def db_stamp_safe(revision):
    """Mark the database at a given revision without running migrations."""
    _assert_safe_for_upgrade()
    alembic_stamp(revision)
    click.echo(f"Database stamped at {revision}.")


@click.command("create-user")
@click.option("--name", required=True)
@click.option("--email", required=True)
@click.option("--phone", default=None)
@click.option("--role", type=click.Choice(["customer", "admin"]), default="customer", show_default=True)
@with_appcontext
def create_user(name, email, phone, role):
    """Create a canteen user (customer or admin)."""
    if db.session.query(User).filter_by(email=email).first():
        raise click.ClickException(f"User with email {email} already exists")
    with transactional("Failed to create user"):
        user = User(name=name, email=email, phone=phone, role=role)
        db.session.add(user)
    click.echo(f"Created {role} user id={user.id}")


@click.command("issue-token")
@click.option("--user-id", type=int, required=True)
@with_appcontext
def issue_token(user_id):
    """Print an access token for an existing user."""
    user = db.session.get(User, user_id)
    if not user:
        raise click.ClickException(f"User {user_id} not found")
    click.echo(create_access_token(user.id, user.role))


def register_cli(app):
    app.cli.add_command(db_migrate_safe)
    app.cli.add_command(db_upgrade_safe)
    app.cli.add_command(db_stamp_safe)
    app.cli.add_command(create_user)
    app.cli.add_command(issue_token)
