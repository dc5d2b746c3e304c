import click

from .extensions import db
from .models import RevokedToken, User
from .models.enums import UserRole
from .services import lifecycle, notifications


def register_cli(app):
    @app.cli.command("seed-admin")
    @click.option("--email", envvar="ADMIN_EMAIL", required=True)
    @click.option("--password", envvar="ADMIN_PASSWORD", required=True)
    @click.option("--name", default="Administrator")
    def seed_admin(email, password, name):
        """Create the admin user, or reset its password if it exists."""
        email = email.strip().lower()
        user = User.query.filter_by(email=email).first()
        if not user:
            user = User(email=email, name=name, role=UserRole.ADMIN.value, is_active=True)
            db.session.add(user)
        user.role = UserRole.ADMIN.value
        user.set_password(password)
        db.session.commit()
        click.echo(f"Admin upserted: {user.id} {user.email}")

    @app.cli.command("mark-overdue")
    def mark_overdue():
        """Move unpaid payments past their due date to OVERDUE."""
        payments = lifecycle.mark_overdue_payments()
        click.echo(f"{len(payments)} payments marked overdue")

    @app.cli.command("expire-contracts")
    def expire_contracts():
        """Expire active contracts whose end date has passed."""
        contracts = lifecycle.expire_contracts()
        click.echo(f"{len(contracts)} contracts expired")

    @app.cli.command("prune-tokens")
    def prune_tokens():
        """Forget revoked tokens that have expired."""
        removed = RevokedToken.prune()
        db.session.commit()
        click.echo(f"{removed} expired revoked tokens removed")

    @app.cli.command("generate-notifications")
    def generate_notifications():
        """Send contract and payment reminders due today."""
        counts = notifications.generate_all()
        for name, count in counts.items():
            click.echo(f"{name}: {count}")
