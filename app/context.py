"""
Request-scoped access to the database session and shared services

Services are created once in create_app() and stored in app.extensions;
the database session lives on flask.g and is closed on teardown.
"""

import logging
from typing import Optional

from flask import Flask, current_app, g
from sqlalchemy.orm import Session

from app.core.currency import ExchangeRateService
from app.core.ledger import PortfolioLedger
from app.core.market_data import MarketDataService
from app.core.quotes import QuoteSource
from app.core.store import AccountStore
from app.db import get_db_manager

logger = logging.getLogger(__name__)

EXTENSION_KEY = "openfx"


def register_services(
    app: Flask,
    quote_source: QuoteSource,
    market_data: MarketDataService,
    exchange_rates: ExchangeRateService,
) -> None:
    app.extensions[EXTENSION_KEY] = {
        "quote_source": quote_source,
        "market_data": market_data,
        "exchange_rates": exchange_rates,
    }

    @app.teardown_appcontext
    def close_session(exception: Optional[BaseException] = None) -> None:
        """Close database session at end of request"""
        session = g.pop("db_session", None)
        if session is not None:
            try:
                session.close()
            except Exception as e:
                logger.warning(f"Error closing session: {e}")


def _services() -> dict:
    return current_app.extensions[EXTENSION_KEY]


def get_request_session() -> Session:
    if "db_session" not in g:
        g.db_session = get_db_manager().get_session()
    return g.db_session


def get_quote_source() -> QuoteSource:
    return _services()["quote_source"]


def get_market_data() -> MarketDataService:
    return _services()["market_data"]


def get_exchange_rates() -> ExchangeRateService:
    return _services()["exchange_rates"]


def get_store() -> AccountStore:
    return AccountStore(get_request_session())


def get_ledger() -> PortfolioLedger:
    return PortfolioLedger(
        get_store(),
        get_quote_source(),
        failure_policy=current_app.config.get("QUOTE_FAILURE_POLICY", "abort"),
    )
