"""
Authentication initialization module

Handles first-run setup: default roles and an optional admin user created
from ADMIN_USERNAME / ADMIN_PASSWORD (or interactively via
`python -m app.cli setup-admin`).
"""

import logging
import os
from typing import Optional

from sqlalchemy import select

logger = logging.getLogger(__name__)

DEFAULT_ROLES = [
    ("admin", "Administrator with user and portfolio management access"),
    ("user", "Regular user with personal portfolio access"),
]


def ensure_roles_exist(session) -> None:
    """Create the default roles if they are missing"""
    from app.models import Role

    for role_name, description in DEFAULT_ROLES:
        existing_role = session.scalars(select(Role).where(Role.name == role_name)).first()
        if not existing_role:
            session.add(Role(name=role_name, description=description))
            logger.info(f"Created default role: {role_name}")

    session.commit()


def check_admin_exists(session) -> bool:
    """True if any user holds the admin role"""
    from app.models import Role, User

    admin_user = session.scalars(
        select(User).join(User.roles).where(Role.name == "admin")
    ).first()
    return admin_user is not None


def create_admin_from_env(session) -> Optional[str]:
    """Create an admin from ADMIN_USERNAME / ADMIN_PASSWORD

    Returns:
        Success message, or None if the variables are unset or creation failed
    """
    username = os.getenv("ADMIN_USERNAME")
    password = os.getenv("ADMIN_PASSWORD")

    if not username or not password:
        logger.debug("ADMIN_USERNAME or ADMIN_PASSWORD not set, skipping env bootstrap")
        return None

    from app.auth.service import AuthService
    from app.models import RoleEnum

    success, user, error = AuthService.register_user(
        session,
        username,
        os.getenv("ADMIN_EMAIL", f"{username}@admin.local"),
        os.getenv("ADMIN_FULLNAME", "Administrator"),
        password,
        roles=(RoleEnum.ADMIN.value, RoleEnum.USER.value),
    )

    if not success:
        logger.error(f"Failed to create admin user: {error}")
        return None

    logger.info(f"Admin user created successfully: {username}")
    return f"Admin user '{username}' created"


def initialize_admin_on_startup(session) -> None:
    """Ensure roles exist and bootstrap an admin if none exists"""
    ensure_roles_exist(session)

    if check_admin_exists(session):
        logger.debug("Admin user already exists, skipping initialization")
        return

    result = create_admin_from_env(session)
    if result:
        logger.info(result)
    else:
        logger.warning(
            "No admin user found and ADMIN_USERNAME/ADMIN_PASSWORD not set. "
            "To create admin user, run: python -m app.cli setup-admin"
        )
