"""
tests/test_market_data.py
Test cases for the Finnhub client and the cached news/candle feeds
"""

from unittest.mock import MagicMock

import pytest
import requests

from app.core.market_data import FinnhubClient, MarketDataError, MarketDataService, map_quote


class TestFinnhubClient:
    def make_client(self, payload):
        session = MagicMock()
        session.get.return_value.json.return_value = payload
        return FinnhubClient("key", timeout=4, session=session), session

    def test_candles_pass_range_params(self) -> None:
        client, session = self.make_client({"s": "ok", "c": [1]})
        assert client.candles("AAPL", "D", 100, 200) == {"s": "ok", "c": [1]}

        args, kwargs = session.get.call_args
        assert args[0].endswith("/stock/candle")
        assert kwargs["params"] == {
            "symbol": "AAPL",
            "resolution": "D",
            "from": 100,
            "to": 200,
            "token": "key",
        }

    def test_search_returns_result_list(self) -> None:
        client, _ = self.make_client({"count": 1, "result": [{"symbol": "AAPL"}]})
        assert client.search("apple") == [{"symbol": "AAPL"}]

    def test_unexpected_shapes_become_empty(self) -> None:
        client, _ = self.make_client(["not", "a", "dict"])
        assert client.profile("AAPL") == {}
        assert client.search("x") == []

    def test_http_error_raises(self) -> None:
        session = MagicMock()
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError("429")
        client = FinnhubClient("key", session=session)
        with pytest.raises(MarketDataError):
            client.news("general")


def test_map_quote_renames_fields() -> None:
    raw = {"c": 10.0, "d": 0.5, "dp": 5.26, "h": 10.2, "l": 9.4, "o": 9.5, "pc": 9.5, "t": 1700000000}
    assert map_quote(raw) == {
        "currentPrice": 10.0,
        "change": 0.5,
        "percentChange": 5.26,
        "highPrice": 10.2,
        "lowPrice": 9.4,
        "openPrice": 9.5,
        "previousClose": 9.5,
        "timestamp": 1700000000,
    }


class TestMarketDataService:
    """News and candles expire by TTL against an injected clock"""

    @pytest.fixture
    def service(self, finnhub, clock):
        return MarketDataService(finnhub, news_ttl=300, candles_ttl=60, clock=clock)

    def test_news_cached_until_ttl(self, service, finnhub, clock) -> None:
        first = service.news("general")
        clock.advance(299)
        assert service.news("general") == first
        assert len(finnhub.calls) == 1

        clock.advance(2)
        service.news("general")
        assert len(finnhub.calls) == 2

    def test_news_keyed_by_category(self, service, finnhub) -> None:
        service.news("General")
        service.news("general")
        service.news("forex")
        assert finnhub.calls == [("news", "general"), ("news", "forex")]

    def test_candles_keyed_by_params(self, service, finnhub, clock) -> None:
        service.candles("AAPL", "D", 0, 100)
        service.candles("AAPL", "D", 0, 100)
        service.candles("AAPL", "D", 0, 200)
        assert len(finnhub.calls) == 2

        clock.advance(61)
        service.candles("AAPL", "D", 0, 100)
        assert len(finnhub.calls) == 3

    def test_failures_are_not_cached(self, service, finnhub) -> None:
        finnhub.fail = True
        with pytest.raises(MarketDataError):
            service.news("general")

        finnhub.fail = False
        assert service.news("general")[0]["headline"] == "general headline"

    def test_quotes_are_never_cached(self, service, finnhub) -> None:
        assert service.quote("AAPL")["currentPrice"] == 187.5
        service.quote("AAPL")
        assert finnhub.calls == [("quote", "AAPL"), ("quote", "AAPL")]

    def test_search_maps_results(self, service) -> None:
        assert service.search("apple") == [
            {
                "symbol": "AAPL",
                "displaySymbol": "AAPL",
                "description": "APPLE INC",
                "type": "Common Stock",
            }
        ]
