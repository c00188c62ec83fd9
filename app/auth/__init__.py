"""
Authentication module

Provides authentication, authorization, and security utilities.
"""

from app.auth.security import PasswordSecurity, validate_password_strength
from app.auth.service import AuthService, AuthenticationError, Identity
from app.auth.decorators import require_login, require_role, current_identity

__all__ = [
    "PasswordSecurity",
    "validate_password_strength",
    "AuthService",
    "AuthenticationError",
    "Identity",
    "require_login",
    "require_role",
    "current_identity",
]
