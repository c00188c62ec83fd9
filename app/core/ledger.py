"""
app/core/ledger.py - Portfolio ledger: trade settlement and valuation

Applies buy/sell instructions to a user's holdings and computes valuation
summaries. Money is handled as Decimal throughout; average cost is kept to
4 decimal places and P&L figures to 2, both rounded half-up.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import (
    ConcurrentTradeError,
    InvalidQuantityError,
    NotFoundError,
    QuoteUnavailableError,
    ValidationError,
)
from app.core.quotes import QuoteSource, placeholder_price, validate_price
from app.core.store import AccountStore
from app.models import Holding, Portfolio

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")

POLICY_ABORT = "abort"
POLICY_PLACEHOLDER = "placeholder"


def round2(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round4(value: Decimal) -> Decimal:
    return value.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)


def normalize_symbol(symbol: Any) -> str:
    if not isinstance(symbol, str) or not symbol.strip():
        raise ValidationError(["symbol is required"])
    return symbol.strip().upper()


def normalize_quantity(quantity: Any) -> Decimal:
    if isinstance(quantity, bool):
        raise InvalidQuantityError("quantity must be a positive number")
    try:
        value = Decimal(str(quantity))
    except (InvalidOperation, ValueError):
        raise InvalidQuantityError("quantity must be a positive number")
    if not value.is_finite() or value <= 0:
        raise InvalidQuantityError("quantity must be a positive number")
    return value


def normalize_price(price: Any) -> Decimal:
    try:
        return normalize_quantity(price)
    except InvalidQuantityError:
        raise ValidationError(["buyPrice must be a positive number"])


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BuyResult:
    holding: Holding
    trade_price: Decimal
    portfolio: Portfolio


@dataclass
class SellResult:
    trade_price: Decimal
    realized_pnl: Decimal
    portfolio: Portfolio
    # None once the sell fully liquidated the holding
    holding: Optional[Holding]


@dataclass
class HoldingValuation:
    symbol: str
    quantity: Decimal
    buy_price: Decimal
    current_price: Decimal
    gain: Decimal
    gain_percent: Optional[Decimal]
    added_at: Optional[datetime]

    @property
    def value(self) -> Decimal:
        return self.quantity * self.current_price


@dataclass
class PortfolioTotals:
    total_invested: Decimal
    total_current: Decimal
    pnl: Decimal
    pnl_percent: Optional[Decimal]


@dataclass
class Valuation:
    username: str
    totals: PortfolioTotals
    holdings: List[HoldingValuation]


def value_holding(holding: Holding) -> HoldingValuation:
    """Per-holding gain figures from stored prices"""
    buy_price = Decimal(holding.buy_price)
    current_price = Decimal(holding.current_price or 0)
    difference = current_price - buy_price
    gain_percent = round2(difference / buy_price * 100) if buy_price > 0 else None
    return HoldingValuation(
        symbol=holding.symbol,
        quantity=Decimal(holding.quantity),
        buy_price=buy_price,
        current_price=current_price,
        gain=round2(difference),
        gain_percent=gain_percent,
        added_at=holding.added_at,
    )


def summarize(holdings: List[HoldingValuation]) -> PortfolioTotals:
    """Aggregate totals; plain sums, so holding order does not matter"""
    total_invested = sum((h.buy_price * h.quantity for h in holdings), Decimal("0"))
    total_current = sum((h.current_price * h.quantity for h in holdings), Decimal("0"))
    pnl = round2(total_current - total_invested)
    pnl_percent = round2(pnl / total_invested * 100) if total_invested > 0 else None
    return PortfolioTotals(
        total_invested=total_invested,
        total_current=total_current,
        pnl=pnl,
        pnl_percent=pnl_percent,
    )


class PortfolioLedger:
    """
    Buy, sell and revalue operations over one user's portfolio

    Each operation reads the portfolio, mutates it in memory and commits it
    in one transaction. The portfolio row is versioned, so if another
    request committed first the flush fails with ConcurrentTradeError and
    nothing is written.

    On a quote failure during a trade the ``failure_policy`` decides:
    ``abort`` raises QuoteUnavailableError, ``placeholder`` substitutes a
    pseudo-random development price. Revalue never substitutes; it keeps
    the previous price.
    """

    def __init__(
        self,
        store: AccountStore,
        quote_source: QuoteSource,
        failure_policy: str = POLICY_ABORT,
        clock: Callable[[], datetime] = utcnow,
        rng: Optional[random.Random] = None,
    ):
        if failure_policy not in (POLICY_ABORT, POLICY_PLACEHOLDER):
            raise ValueError(f"Unknown quote failure policy: {failure_policy}")
        self.store = store
        self.quote_source = quote_source
        self.failure_policy = failure_policy
        self.clock = clock
        self.rng = rng

    def buy(self, username: str, symbol: Any, quantity: Any) -> BuyResult:
        symbol = normalize_symbol(symbol)
        quantity = normalize_quantity(quantity)
        portfolio = self._load(username)

        trade_price = self._trade_price(symbol)
        holding = portfolio.find_holding(symbol)

        if holding is None:
            holding = Holding(
                symbol=symbol,
                quantity=quantity,
                buy_price=trade_price,
                current_price=trade_price,
                added_at=self.clock(),
            )
            portfolio.holdings.append(holding)
        else:
            old_quantity = Decimal(holding.quantity)
            old_average = Decimal(holding.buy_price)
            new_quantity = old_quantity + quantity
            new_average = (old_average * old_quantity + trade_price * quantity) / new_quantity
            holding.quantity = new_quantity
            holding.buy_price = round4(new_average)
            holding.current_price = trade_price

        self._persist(portfolio)
        logger.info(f"{username} bought {quantity} {symbol} @ {trade_price}")
        return BuyResult(holding=holding, trade_price=trade_price, portfolio=portfolio)

    def sell(self, username: str, symbol: Any, quantity: Any) -> SellResult:
        symbol = normalize_symbol(symbol)
        quantity = normalize_quantity(quantity)
        portfolio = self._load(username)

        holding = portfolio.find_holding(symbol)
        if holding is None:
            raise NotFoundError("holding not found")

        held = Decimal(holding.quantity)
        if quantity > held:
            raise InvalidQuantityError("sell quantity exceeds holding", holding_quantity=held)

        trade_price = self._trade_price(symbol)
        cost_basis = Decimal(holding.buy_price) * quantity
        proceeds = trade_price * quantity
        realized_pnl = round2(proceeds - cost_basis)

        remaining: Optional[Holding] = holding
        if quantity == held:
            portfolio.holdings.remove(holding)
            remaining = None
        else:
            holding.quantity = held - quantity
            holding.current_price = trade_price

        self._persist(portfolio)
        logger.info(
            f"{username} sold {quantity} {symbol} @ {trade_price}, realized {realized_pnl}"
        )
        return SellResult(
            trade_price=trade_price,
            realized_pnl=realized_pnl,
            portfolio=portfolio,
            holding=remaining,
        )

    def revalue(self, username: str) -> Valuation:
        portfolio = self._load(username)
        quotes = self._fetch_quotes(h.symbol for h in portfolio.holdings)

        applied = False
        for holding in portfolio.holdings:
            price = quotes.get(holding.symbol)
            if price is not None:
                holding.current_price = price
                applied = True

        if applied:
            self._persist(portfolio)

        holdings = [value_holding(h) for h in portfolio.holdings]
        return Valuation(username=username, totals=summarize(holdings), holdings=holdings)

    def set_holding(
        self, username: str, symbol: Any, quantity: Any, buy_price: Any
    ) -> Holding:
        """Administrative upsert of a holding's quantity and average price

        No quote is fetched; a new holding starts with current price equal
        to the given buy price.
        """
        symbol = normalize_symbol(symbol)
        quantity = normalize_quantity(quantity)
        buy_price = normalize_price(buy_price)
        portfolio = self._load(username)

        holding = portfolio.find_holding(symbol)
        if holding is None:
            holding = Holding(
                symbol=symbol,
                quantity=quantity,
                buy_price=round4(buy_price),
                current_price=buy_price,
                added_at=self.clock(),
            )
            portfolio.holdings.append(holding)
        else:
            holding.quantity = quantity
            holding.buy_price = round4(buy_price)

        self._persist(portfolio)
        logger.info(f"Holding {symbol} of {username} set to {quantity} @ {buy_price}")
        return holding

    def remove_holding(self, username: str, symbol: Any) -> None:
        symbol = normalize_symbol(symbol)
        portfolio = self._load(username)

        holding = portfolio.find_holding(symbol)
        if holding is None:
            raise NotFoundError("holding not found")

        portfolio.holdings.remove(holding)
        self._persist(portfolio)
        logger.info(f"Holding {symbol} removed from {username}")

    def revalue_all(self) -> int:
        """Refresh every portfolio; returns how many were refreshed"""
        refreshed = 0
        for portfolio in self.store.list_portfolios():
            try:
                self.revalue(portfolio.user_username)
                refreshed += 1
            except ConcurrentTradeError:
                logger.warning(f"Skipped refresh for {portfolio.user_username}: concurrent update")
        return refreshed

    def _load(self, username: str) -> Portfolio:
        portfolio = self.store.find_portfolio_by_username(username)
        if portfolio is None:
            raise NotFoundError("portfolio not found")
        return portfolio

    def _fetch_quotes(self, symbols: Any) -> Dict[str, Decimal]:
        """One quote per distinct symbol; failed symbols are left out"""
        quotes: Dict[str, Decimal] = {}
        for symbol in dict.fromkeys(symbols):
            try:
                quotes[symbol] = validate_price(symbol, self.quote_source.get_quote(symbol))
            except QuoteUnavailableError as e:
                logger.warning(f"Keeping last price for {symbol}: {e}")
        return quotes

    def _trade_price(self, symbol: str) -> Decimal:
        try:
            return validate_price(symbol, self.quote_source.get_quote(symbol))
        except QuoteUnavailableError:
            if self.failure_policy != POLICY_PLACEHOLDER:
                raise
            price = placeholder_price(self.rng)
            logger.warning(f"Quote unavailable for {symbol}, using placeholder price {price}")
            return price

    def _persist(self, portfolio: Portfolio) -> None:
        session = self.store.session
        # Touching the row bumps its version even when only holdings changed
        portfolio.updated_at = self.clock()
        try:
            self.store.save(portfolio)
            session.commit()
        except StaleDataError as e:
            session.rollback()
            logger.warning(f"Concurrent update on portfolio {portfolio.user_username}")
            raise ConcurrentTradeError(
                "portfolio was modified by another request, retry"
            ) from e
        except OperationalError as e:
            session.rollback()
            # SQLite reports a competing open write as a lock timeout
            if "database is locked" not in str(e):
                raise
            logger.warning(f"Portfolio {portfolio.user_username} locked by another writer")
            raise ConcurrentTradeError(
                "portfolio was modified by another request, retry"
            ) from e
