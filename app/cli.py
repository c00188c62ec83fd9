"""
CLI commands for the portfolio service

Provides administrative commands for:
- Database initialization
- Setting up the initial admin user
- Managing users
- Refreshing stored prices
"""

import sys
import logging
import click
from dotenv import load_dotenv

load_dotenv()

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _database_manager():
    from app.db import DatabaseManager
    from config.settings import get_config

    return DatabaseManager(get_config().DATABASE_URL())


@click.group()
def cli() -> None:
    """OpenFX CLI - Administrative commands"""
    pass


@cli.command()
def init_db() -> None:
    """
    Initialize the database with schema and default data

    Creates tables and initializes default roles.
    """
    try:
        from app.auth.init import ensure_roles_exist

        click.echo("Initializing database...")

        db_manager = _database_manager()
        db_manager.init_db()
        click.echo("✓ Tables created")

        with db_manager.session_context() as session:
            ensure_roles_exist(session)
        click.echo("✓ Default roles created")

        click.echo("\nDatabase initialized successfully!")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        logger.exception("Database initialization failed")
        sys.exit(1)


@cli.command()
def setup_admin() -> None:
    """
    Interactive setup for admin user creation

    The admin user can manage other users and edit any portfolio.
    """
    try:
        from app.auth.init import check_admin_exists, ensure_roles_exist
        from app.auth.security import validate_password_strength
        from app.auth.service import AuthService
        from app.models import RoleEnum

        click.echo("\n" + "=" * 60)
        click.echo("Admin User Setup")
        click.echo("=" * 60 + "\n")

        try:
            db_manager = _database_manager()
            db_manager.init_db()
            session = db_manager.get_session()
        except Exception as e:
            click.echo(f"Error: Could not connect to database: {e}", err=True)
            sys.exit(1)

        try:
            ensure_roles_exist(session)
            if check_admin_exists(session):
                click.echo("An admin user already exists. Exiting.")
                return

            username = click.prompt("Admin username").strip()
            email = click.prompt("Admin email").strip()
            fullname = click.prompt("Full name", default="Administrator").strip()

            # Get password with validation
            while True:
                password = click.prompt("Admin password", hide_input=True)
                is_valid, error_msg = validate_password_strength(password)

                if not is_valid:
                    click.echo(f"Password invalid: {error_msg}")
                    continue

                confirm_password = click.prompt("Confirm password", hide_input=True)
                if password != confirm_password:
                    click.echo("Passwords do not match.")
                    continue

                break

            click.echo("\nCreating admin user...")
            success, user, error = AuthService.register_user(
                session,
                username,
                email,
                fullname,
                password,
                roles=(RoleEnum.ADMIN.value, RoleEnum.USER.value),
            )

            if success:
                click.echo("\n" + "=" * 60)
                click.echo("✓ Admin user created successfully!")
                click.echo("=" * 60)
                click.echo(f"Username: {username}")
                click.echo(f"Email: {email}")
                click.echo("Roles: admin, user")
                click.echo("=" * 60 + "\n")
            else:
                click.echo(f"\nError: {error}", err=True)
                sys.exit(1)

        finally:
            session.close()

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        logger.exception("Admin setup failed")
        sys.exit(1)


@cli.command()
@click.option("--username", prompt=True, help="Login name, 3-30 letters or digits")
@click.option("--email", prompt=True, help="Email address")
@click.option("--fullname", prompt=True, help="Display name")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--admin", is_flag=True, help="Also grant the admin role")
def create_user(username: str, email: str, fullname: str, password: str, admin: bool) -> None:
    """
    Create a user with an empty portfolio
    """
    try:
        from app.auth.service import AuthService
        from app.models import RoleEnum

        roles = [RoleEnum.USER.value] + ([RoleEnum.ADMIN.value] if admin else [])

        db_manager = _database_manager()
        db_manager.init_db()
        session = db_manager.get_session()

        try:
            success, user, error = AuthService.register_user(
                session, username, email, fullname, password, roles=roles
            )
            if not success or not user:
                click.echo(f"Error: {error}", err=True)
                sys.exit(1)

            click.echo(f"✓ User '{user.username}' created with roles: {', '.join(user.role_names)}")

        finally:
            session.close()

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        logger.exception("User creation failed")
        sys.exit(1)


@cli.command()
@click.option("--username", prompt=True, help="Username to delete")
@click.confirmation_option(
    prompt="Are you sure you want to delete this user and their portfolio? This cannot be undone."
)
def delete_user(username: str) -> None:
    """
    Delete a user and their portfolio

    Use with caution - this operation cannot be undone.
    """
    try:
        from app.core.errors import NotFoundError
        from app.core.store import AccountStore

        click.echo(f"Deleting user: {username}")

        session = _database_manager().get_session()

        try:
            try:
                AccountStore(session).delete_user(username)
            except NotFoundError:
                click.echo(f"User '{username}' not found.", err=True)
                sys.exit(1)

            session.commit()
            click.echo(f"✓ User '{username}' deleted successfully")

        finally:
            session.close()

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        logger.exception("User deletion failed")
        sys.exit(1)


@cli.command()
def list_users() -> None:
    """
    List all users in the system
    """
    try:
        from app.core.store import AccountStore

        session = _database_manager().get_session()

        try:
            store = AccountStore(session)
            users = store.list_users()

            if not users:
                click.echo("No users found.")
                return

            click.echo("\n" + "=" * 60)
            click.echo("Users")
            click.echo("=" * 60)

            for user in users:
                holdings = len(user.portfolio.holdings) if user.portfolio else 0
                click.echo(
                    f"Username: {user.username} | Email: {user.email} | "
                    f"Roles: {', '.join(user.role_names)} | Holdings: {holdings}"
                )

            click.echo("=" * 60 + "\n")

        finally:
            session.close()

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        logger.exception("List users failed")
        sys.exit(1)


@cli.command()
def refresh_prices() -> None:
    """
    Revalue every portfolio at current market prices
    """
    try:
        from app.core.ledger import PortfolioLedger
        from app.core.quotes import build_quote_source
        from app.core.store import AccountStore
        from config.settings import get_config

        config = get_config()
        session = _database_manager().get_session()

        try:
            ledger = PortfolioLedger(
                AccountStore(session),
                build_quote_source(config),
                failure_policy=config.QUOTE_FAILURE_POLICY(),
            )
            refreshed = ledger.revalue_all()
            click.echo(f"✓ Refreshed {refreshed} portfolio(s)")

        finally:
            session.close()

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        logger.exception("Price refresh failed")
        sys.exit(1)


if __name__ == "__main__":
    cli()
