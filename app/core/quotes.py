"""
app/core/quotes.py - Quote sources used to price trades and revaluations
"""

import logging
import math
import random
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

import pandas as pd
import yfinance as yf

from app.core.errors import QuoteUnavailableError
from app.core.market_data import FinnhubClient, MarketDataError

logger = logging.getLogger(__name__)


def validate_price(symbol: str, value: Any) -> Decimal:
    """Return value as a Decimal if it is a finite positive number"""
    if value is None or isinstance(value, bool):
        raise QuoteUnavailableError(symbol, "no price returned")

    try:
        as_float = float(value)
    except (TypeError, ValueError):
        raise QuoteUnavailableError(symbol, "non-numeric price")

    if not math.isfinite(as_float) or as_float <= 0:
        raise QuoteUnavailableError(symbol, "invalid price")

    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise QuoteUnavailableError(symbol, "non-numeric price")


class QuoteSource(ABC):
    """Returns the current price for a symbol or raises QuoteUnavailableError"""

    @abstractmethod
    def get_quote(self, symbol: str) -> Decimal:
        ...


class FinnhubQuoteSource(QuoteSource):
    """Last trade price from Finnhub's /quote endpoint (field ``c``)"""

    def __init__(self, client: FinnhubClient):
        self.client = client

    def get_quote(self, symbol: str) -> Decimal:
        try:
            data = self.client.quote(symbol)
        except MarketDataError as e:
            logger.error(f"Finnhub quote error for {symbol}: {e}")
            raise QuoteUnavailableError(symbol) from e

        try:
            return validate_price(symbol, data.get("c"))
        except QuoteUnavailableError:
            logger.error(f"Finnhub returned invalid price for {symbol}: {data}")
            raise


class YahooQuoteSource(QuoteSource):
    """Last price from Yahoo Finance via yfinance"""

    def __init__(self, ticker_factory: Callable[[str], Any] = yf.Ticker):
        self.ticker_factory = ticker_factory

    def get_quote(self, symbol: str) -> Decimal:
        try:
            ticker = self.ticker_factory(symbol)
            price = self._fast_price(ticker)
            if price is None:
                history = ticker.history(period="5d", interval="1d")
                if isinstance(history, pd.DataFrame) and not history.empty:
                    price = history["Close"].dropna().iloc[-1]
        except QuoteUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Yahoo quote error for {symbol}: {e}")
            raise QuoteUnavailableError(symbol) from e

        return validate_price(symbol, price)

    @staticmethod
    def _fast_price(ticker: Any) -> Optional[float]:
        try:
            price = ticker.fast_info.last_price
        except (AttributeError, KeyError):
            return None
        if price is None or (isinstance(price, float) and not math.isfinite(price)):
            return None
        return price


def placeholder_price(rng: Optional[random.Random] = None) -> Decimal:
    """Pseudo-random development price in [50, 200], 2 decimals"""
    rng = rng or random.Random()
    return Decimal(str(round(50 + rng.random() * 150, 2)))


def build_quote_source(config: Any) -> QuoteSource:
    """Create the quote source selected by QUOTE_PROVIDER"""
    provider = config.QUOTE_PROVIDER()
    if provider == "yahoo":
        logger.info("Using Yahoo Finance quote source")
        return YahooQuoteSource()

    logger.info("Using Finnhub quote source")
    return FinnhubQuoteSource(
        FinnhubClient(config.FINNHUB_API_KEY(), timeout=config.QUOTE_TIMEOUT())
    )
