"""
tests/test_quotes.py
Test cases for the Finnhub and Yahoo quote sources
"""

import math
import random
from decimal import Decimal
from unittest.mock import MagicMock

import pandas as pd
import pytest
import requests

from app.core.errors import QuoteUnavailableError
from app.core.market_data import FinnhubClient
from app.core.quotes import (
    FinnhubQuoteSource,
    YahooQuoteSource,
    build_quote_source,
    placeholder_price,
    validate_price,
)


def finnhub_session(payload=None, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        response = MagicMock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        session.get.return_value = response
    return session


class TestValidatePrice:
    """Only finite positive numbers are usable prices"""

    def test_accepts_positive_numbers(self) -> None:
        assert validate_price("A", 12.5) == Decimal("12.5")
        assert validate_price("A", "7") == Decimal("7")
        assert validate_price("A", Decimal("0.01")) == Decimal("0.01")

    @pytest.mark.parametrize("value", [None, 0, -1, math.nan, math.inf, "abc", True])
    def test_rejects_unusable_values(self, value) -> None:
        with pytest.raises(QuoteUnavailableError):
            validate_price("A", value)


class TestFinnhubQuoteSource:
    """Last price from the /quote endpoint"""

    def test_returns_current_price(self) -> None:
        session = finnhub_session({"c": 187.5, "pc": 186.0})
        source = FinnhubQuoteSource(FinnhubClient("key", timeout=3, session=session))

        assert source.get_quote("AAPL") == Decimal("187.5")

        args, kwargs = session.get.call_args
        assert args[0] == "https://finnhub.io/api/v1/quote"
        assert kwargs["params"] == {"symbol": "AAPL", "token": "key"}
        assert kwargs["timeout"] == 3

    def test_zero_price_is_unavailable(self) -> None:
        # Finnhub answers unknown symbols with c = 0
        session = finnhub_session({"c": 0, "d": None})
        source = FinnhubQuoteSource(FinnhubClient("key", session=session))
        with pytest.raises(QuoteUnavailableError):
            source.get_quote("NOPE")

    def test_network_error_is_unavailable(self) -> None:
        session = finnhub_session(error=requests.Timeout("slow"))
        source = FinnhubQuoteSource(FinnhubClient("key", session=session))
        with pytest.raises(QuoteUnavailableError):
            source.get_quote("AAPL")

    def test_missing_api_key_is_unavailable(self) -> None:
        session = finnhub_session({"c": 10})
        source = FinnhubQuoteSource(FinnhubClient(None, session=session))
        with pytest.raises(QuoteUnavailableError):
            source.get_quote("AAPL")
        session.get.assert_not_called()


class TestYahooQuoteSource:
    """Last price via yfinance"""

    def test_uses_fast_info(self) -> None:
        ticker = MagicMock()
        ticker.fast_info.last_price = 101.5
        source = YahooQuoteSource(ticker_factory=lambda symbol: ticker)

        assert source.get_quote("AAPL") == Decimal("101.5")
        ticker.history.assert_not_called()

    def test_falls_back_to_last_close(self) -> None:
        ticker = MagicMock()
        ticker.fast_info.last_price = float("nan")
        ticker.history.return_value = pd.DataFrame({"Close": [99.0, 100.25, None]})
        source = YahooQuoteSource(ticker_factory=lambda symbol: ticker)

        assert source.get_quote("AAPL") == Decimal("100.25")

    def test_empty_history_is_unavailable(self) -> None:
        ticker = MagicMock()
        ticker.fast_info.last_price = None
        ticker.history.return_value = pd.DataFrame()
        source = YahooQuoteSource(ticker_factory=lambda symbol: ticker)

        with pytest.raises(QuoteUnavailableError):
            source.get_quote("AAPL")

    def test_library_error_is_unavailable(self) -> None:
        def broken(symbol):
            raise RuntimeError("yahoo down")

        with pytest.raises(QuoteUnavailableError):
            YahooQuoteSource(ticker_factory=broken).get_quote("AAPL")


class TestQuoteSourceSelection:
    def test_provider_selection(self) -> None:
        class YahooConfig:
            @staticmethod
            def QUOTE_PROVIDER():
                return "yahoo"

        class FinnhubConfig:
            @staticmethod
            def QUOTE_PROVIDER():
                return "finnhub"

            @staticmethod
            def FINNHUB_API_KEY():
                return "key"

            @staticmethod
            def QUOTE_TIMEOUT():
                return 2.5

        assert isinstance(build_quote_source(YahooConfig), YahooQuoteSource)

        finnhub = build_quote_source(FinnhubConfig)
        assert isinstance(finnhub, FinnhubQuoteSource)
        assert finnhub.client.timeout == 2.5


def test_placeholder_price_range() -> None:
    rng = random.Random(42)
    for _ in range(200):
        price = placeholder_price(rng)
        assert Decimal("50") <= price <= Decimal("200")
        assert price == price.quantize(Decimal("0.01"))
