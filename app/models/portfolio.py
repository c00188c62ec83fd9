"""
Portfolio models for tracking held positions

Tables:
- portfolios: One portfolio per user, keyed by the owner's username
- holdings: One row per (portfolio, symbol)
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin


class Portfolio(Base, TimestampMixin):
    """User portfolio

    The version column is bumped on every write; a writer holding a stale
    copy fails on flush instead of overwriting a concurrent trade.
    """

    __tablename__ = "portfolios"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_username: Mapped[str] = mapped_column(
        ForeignKey("users.username", ondelete="CASCADE", onupdate="CASCADE"),
        unique=True,
    )
    version: Mapped[int] = mapped_column(nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="portfolio")  # noqa: F821
    holdings: Mapped[list["Holding"]] = relationship(
        "Holding",
        back_populates="portfolio",
        cascade="all, delete-orphan",
        order_by="Holding.id",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def find_holding(self, symbol: str) -> "Holding | None":
        for holding in self.holdings:
            if holding.symbol == symbol:
                return holding
        return None


class Holding(Base):
    """Position in a single symbol

    buy_price is the quantity-weighted average acquisition price;
    current_price is the last trade or refresh price seen.
    """

    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint("portfolio_id", "symbol", name="uq_holdings_portfolio_symbol"),
        Index("idx_holdings_portfolio_id", "portfolio_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    portfolio_id: Mapped[int] = mapped_column(ForeignKey("portfolios.id", ondelete="CASCADE"))
    symbol: Mapped[str] = mapped_column(String(20))
    quantity: Mapped[Decimal] = mapped_column(Numeric(24, 8))
    buy_price: Mapped[Decimal] = mapped_column(Numeric(20, 6))
    current_price: Mapped[Decimal] = mapped_column(Numeric(20, 6), default=Decimal("0"))
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    portfolio: Mapped[Portfolio] = relationship("Portfolio", back_populates="holdings")
