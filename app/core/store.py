"""
app/core/store.py - Account store for users and their portfolios
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models import Portfolio, Role, RoleEnum, User

logger = logging.getLogger(__name__)


class DuplicateUserError(Exception):
    """Username or email already registered"""


class AccountStore:
    """Users and portfolios, looked up by username

    Write methods flush but do not commit; the caller owns the transaction.
    """

    def __init__(self, session: Session):
        self.session = session

    def find_user_by_username(self, username: str) -> Optional[User]:
        return self.session.scalars(select(User).where(User.username == username)).first()

    def list_users(self) -> List[User]:
        return list(self.session.scalars(select(User).order_by(User.username)))

    def create_user(
        self,
        username: str,
        email: str,
        fullname: str,
        password_hash: str,
        roles: Iterable[str] = (RoleEnum.USER.value,),
    ) -> User:
        """Create a user together with an empty portfolio"""
        existing = self.session.scalars(
            select(User).where(or_(User.username == username, User.email == email))
        ).first()
        if existing:
            raise DuplicateUserError("email or username exists")

        user = User(
            username=username,
            email=email,
            fullname=fullname,
            password_hash=password_hash,
            roles=self._resolve_roles(roles),
        )
        user.portfolio = Portfolio(user_username=username, holdings=[])
        self.session.add(user)
        self.session.flush()
        logger.info(f"Created user {username} with roles {user.role_names}")
        return user

    def set_roles(self, username: str, roles: Iterable[str]) -> User:
        user = self.find_user_by_username(username)
        if not user:
            raise NotFoundError("user not found")
        user.roles = self._resolve_roles(roles)
        self.session.flush()
        return user

    def delete_user(self, username: str) -> None:
        """Delete a user; the portfolio and its holdings go with it"""
        user = self.find_user_by_username(username)
        if not user:
            raise NotFoundError("user not found")
        self.session.delete(user)
        self.session.flush()
        logger.info(f"Deleted user {username} and portfolio")

    def find_portfolio_by_username(self, username: str) -> Optional[Portfolio]:
        return self.session.scalars(
            select(Portfolio).where(Portfolio.user_username == username)
        ).first()

    def list_portfolios(self) -> List[Portfolio]:
        return list(self.session.scalars(select(Portfolio).order_by(Portfolio.id)))

    def save(self, portfolio: Portfolio) -> Portfolio:
        self.session.add(portfolio)
        self.session.flush()
        return portfolio

    def _resolve_roles(self, names: Iterable[str]) -> List[Role]:
        wanted = sorted({str(getattr(name, "value", name)).lower() for name in names})
        if not wanted:
            wanted = [RoleEnum.USER.value]

        roles = list(self.session.scalars(select(Role).where(Role.name.in_(wanted))))
        missing = set(wanted) - {role.name for role in roles}
        for name in sorted(missing):
            if name not in {r.value for r in RoleEnum}:
                raise ValueError(f"Role '{name}' does not exist")
            role = Role(name=name, description=f"{name} role")
            self.session.add(role)
            roles.append(role)
        return roles
