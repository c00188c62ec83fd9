"""
Core business logic package
"""

from .errors import (
    LedgerError,
    NotFoundError,
    InvalidQuantityError,
    QuoteUnavailableError,
    ConcurrentTradeError,
    ValidationError,
)
from .ledger import PortfolioLedger, Valuation, BuyResult, SellResult
from .quotes import QuoteSource, FinnhubQuoteSource, YahooQuoteSource, build_quote_source
from .store import AccountStore, DuplicateUserError

__all__ = [
    "LedgerError",
    "NotFoundError",
    "InvalidQuantityError",
    "QuoteUnavailableError",
    "ConcurrentTradeError",
    "ValidationError",
    "PortfolioLedger",
    "Valuation",
    "BuyResult",
    "SellResult",
    "QuoteSource",
    "FinnhubQuoteSource",
    "YahooQuoteSource",
    "build_quote_source",
    "AccountStore",
    "DuplicateUserError",
]
