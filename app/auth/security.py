"""
Password hashing utilities

Provides bcrypt password hashing and verification and the password policy.
"""

from typing import Tuple
import bcrypt

from config.settings import get_config

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 200

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode('utf-8')[:BCRYPT_MAX_BYTES]


class PasswordSecurity:
    """Password hashing and verification using bcrypt"""

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt

        The work factor comes from BCRYPT_SALT_ROUNDS (default 10).

        Args:
            password: Plain text password to hash

        Returns:
            Hashed password (safe to store in database)
        """
        salt = bcrypt.gensalt(rounds=get_config().BCRYPT_ROUNDS())
        return bcrypt.hashpw(_password_bytes(password), salt).decode('utf-8')

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        """Verify a password against its hash

        Returns:
            True if password matches hash, False otherwise (including
            malformed hashes)
        """
        try:
            return bcrypt.checkpw(_password_bytes(password), password_hash.encode('utf-8'))
        except ValueError:
            return False


def validate_password_strength(password: str) -> Tuple[bool, str | None]:
    """Validate password length

    Returns:
        (True, None) if valid, otherwise (False, reason)
    """
    if not password:
        return False, "Password cannot be empty"

    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"

    if len(password) > MAX_PASSWORD_LENGTH:
        return False, f"Password must not exceed {MAX_PASSWORD_LENGTH} characters"

    return True, None
