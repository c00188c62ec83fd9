"""
SQLAlchemy ORM models package

Provides data models for all database tables:
- Accounts: User, Role
- Portfolio: Portfolio, Holding
"""

from app.models.base import Base, TimestampMixin
from app.models.user import User, Role, RoleEnum
from app.models.portfolio import Portfolio, Holding

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "Role",
    "RoleEnum",
    "Portfolio",
    "Holding",
]
