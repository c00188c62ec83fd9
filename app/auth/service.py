"""
Authentication service layer

Handles user registration, login, token generation and resolving an
incoming request to an Identity.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Iterable, Mapping
from sqlalchemy.orm import Session
from flask_jwt_extended import create_access_token as jwt_create_access_token, decode_token

from app.core.store import AccountStore, DuplicateUserError
from app.models import User, RoleEnum
from app.auth.security import PasswordSecurity, validate_password_strength
from config.settings import get_config

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9]{3,30}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

DUPLICATE_USER_ERROR = "email or username exists"


class AuthenticationError(Exception):
    """Request could not be resolved to a user"""

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.extra = extra

    def to_dict(self) -> dict:
        return {"error": str(self), **self.extra}


@dataclass(frozen=True)
class Identity:
    """Authenticated caller, however the credentials were presented

    method is "bearer" for JWT tokens and "password" for the legacy
    username/password pair.
    """

    username: str
    roles: tuple = field(default_factory=tuple)
    method: str = "bearer"

    def has_role(self, role_name: str) -> bool:
        return role_name in self.roles

    @classmethod
    def from_user(cls, user: User, method: str) -> "Identity":
        return cls(username=user.username, roles=tuple(user.role_names), method=method)


def validate_registration(
    username: str, email: str, fullname: str, password: str
) -> str | None:
    """Return the first problem with a registration payload, or None"""
    if not USERNAME_PATTERN.match(username or ""):
        return "Username must be 3-30 letters or digits"

    if not EMAIL_PATTERN.match(email or ""):
        return "Invalid email format"

    if not fullname or len(fullname) < 2 or len(fullname) > 100:
        return "Full name must be 2-100 characters"

    is_valid, error = validate_password_strength(password)
    if not is_valid:
        return error

    return None


class AuthService:
    """Authentication service for user accounts and tokens"""

    @staticmethod
    def register_user(
        session: Session,
        username: str,
        email: str,
        fullname: str,
        password: str,
        roles: Iterable[str] = (RoleEnum.USER.value,),
    ) -> tuple[bool, User | None, str | None]:
        """Register a new user and create the empty portfolio

        Returns:
            Tuple of (success, user, error_message)
        """
        error = validate_registration(username, email, fullname, password)
        if error:
            return False, None, error

        try:
            password_hash = PasswordSecurity.hash_password(password)
            user = AccountStore(session).create_user(
                username=username,
                email=email,
                fullname=fullname,
                password_hash=password_hash,
                roles=roles,
            )
            session.commit()
            logger.info(f"User registered: {username}")
            return True, user, None
        except DuplicateUserError:
            session.rollback()
            return False, None, DUPLICATE_USER_ERROR
        except ValueError as e:
            session.rollback()
            return False, None, str(e)

    @staticmethod
    def login_user(
        session: Session,
        username: str,
        password: str,
    ) -> tuple[bool, User | None, str | None]:
        """Authenticate user with password

        Returns:
            Tuple of (success, user, error_message)
        """
        user = AccountStore(session).find_user_by_username(username)
        if not user or not PasswordSecurity.verify_password(password, user.password_hash):
            return False, None, "invalid credentials"

        logger.info(f"User logged in: {username}")
        return True, user, None

    @staticmethod
    def create_access_token(user: User, expires_in_hours: int | None = None) -> str:
        """Create JWT access token carrying the username and roles"""
        if expires_in_hours is None:
            expires_in_hours = get_config().JWT_EXPIRES_HOURS()

        token: str = jwt_create_access_token(
            identity=user.username,
            additional_claims={"username": user.username, "roles": user.role_names},
            expires_delta=timedelta(hours=expires_in_hours),
        )
        return token

    @staticmethod
    def authenticate(
        session: Session,
        authorization: str | None,
        body: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Identity:
        """Resolve request credentials to an Identity

        A bearer token wins; an invalid token is rejected outright. Without
        one, the legacy username/password pair is read from the JSON body or
        the x-username / x-password headers.

        Raises:
            AuthenticationError
        """
        store = AccountStore(session)

        if authorization and authorization.lower().startswith("bearer "):
            token = authorization.split(" ", 1)[1].strip()
            try:
                decoded = decode_token(token)
            except Exception as e:
                logger.warning(f"Token validation failed: {e}")
                raise AuthenticationError("invalid token")

            username = decoded.get("username") or decoded.get("sub")
            if not username:
                raise AuthenticationError("invalid token")

            user = store.find_user_by_username(username)
            if not user:
                raise AuthenticationError("invalid token user")
            return Identity.from_user(user, "bearer")

        body = body or {}
        headers = headers or {}
        username = str(body.get("username") or headers.get("x-username") or "").strip()
        password = str(body.get("password") or headers.get("x-password") or "")
        if not username or not password:
            raise AuthenticationError("missing credentials", required=["username", "password"])

        user = store.find_user_by_username(username)
        if not user or not PasswordSecurity.verify_password(password, user.password_hash):
            raise AuthenticationError("invalid credentials")
        return Identity.from_user(user, "password")

    @staticmethod
    def reset_password(
        session: Session,
        user: User,
        new_password: str,
    ) -> tuple[bool, str | None]:
        """Replace a user's password

        Returns:
            Tuple of (success, error_message)
        """
        is_valid, error = validate_password_strength(new_password)
        if not is_valid:
            return False, error

        user.password_hash = PasswordSecurity.hash_password(new_password)
        session.commit()
        logger.info(f"Password reset for user: {user.username}")
        return True, None
