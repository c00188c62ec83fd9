"""
app/core/market_data.py - Finnhub market data client and cached feeds
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests  # type: ignore
from cachetools import TTLCache

logger = logging.getLogger(__name__)


class MarketDataError(Exception):
    """Upstream market data request failed"""


class FinnhubClient:
    """
    Thin client over the Finnhub REST API

    No retries: a failed request surfaces as MarketDataError and the caller
    decides what to do (stale price, error response, placeholder).
    """

    BASE_URL = "https://finnhub.io/api/v1"

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 8.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, **params: Any) -> Any:
        if not self.api_key:
            raise MarketDataError("FINNHUB_API_KEY not set")

        params["token"] = self.api_key
        try:
            response = self.session.get(
                f"{self.BASE_URL}{path}", params=params, timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise MarketDataError(f"Finnhub request {path} failed: {e}") from e
        except ValueError as e:
            raise MarketDataError(f"Finnhub returned invalid JSON for {path}") from e

    def quote(self, symbol: str) -> Dict[str, Any]:
        """Raw quote: c, d, dp, h, l, o, pc, t"""
        data = self._get("/quote", symbol=symbol)
        return data if isinstance(data, dict) else {}

    def search(self, query: str) -> List[Dict[str, Any]]:
        data = self._get("/search", q=query)
        results = data.get("result") if isinstance(data, dict) else None
        return results if isinstance(results, list) else []

    def profile(self, symbol: str) -> Dict[str, Any]:
        data = self._get("/stock/profile2", symbol=symbol)
        return data if isinstance(data, dict) else {}

    def news(self, category: str) -> List[Dict[str, Any]]:
        data = self._get("/news", category=category)
        return data if isinstance(data, list) else []

    def candles(self, symbol: str, resolution: str, start: int, end: int) -> Dict[str, Any]:
        data = self._get(
            "/stock/candle", symbol=symbol, resolution=resolution, **{"from": start, "to": end}
        )
        return data if isinstance(data, dict) else {}


def map_quote(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map Finnhub's single-letter quote fields to the client's names"""
    return {
        "currentPrice": raw.get("c"),
        "change": raw.get("d"),
        "percentChange": raw.get("dp"),
        "highPrice": raw.get("h"),
        "lowPrice": raw.get("l"),
        "openPrice": raw.get("o"),
        "previousClose": raw.get("pc"),
        "timestamp": raw.get("t"),
    }


class MarketDataService:
    """
    Market data proxy with time-boxed caches for the news and candle feeds

    Entries are keyed by request parameters and expire by TTL on the next
    read. The clock is injectable so expiry can be tested without sleeping.
    Quotes are never cached here.
    """

    def __init__(
        self,
        client: FinnhubClient,
        news_ttl: int = 300,
        candles_ttl: int = 300,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.news_cache: TTLCache = TTLCache(maxsize=max_entries, ttl=news_ttl, timer=clock)
        self.candles_cache: TTLCache = TTLCache(
            maxsize=max_entries, ttl=candles_ttl, timer=clock
        )

    def news(self, category: str = "general") -> List[Dict[str, Any]]:
        category = (category or "general").strip().lower()
        if category in self.news_cache:
            return self.news_cache[category]

        items = self.client.news(category)
        self.news_cache[category] = items
        logger.info(f"Fetched {len(items)} news items for category {category}")
        return items

    def candles(self, symbol: str, resolution: str, start: int, end: int) -> Dict[str, Any]:
        key = (symbol, resolution, start, end)
        if key in self.candles_cache:
            return self.candles_cache[key]

        data = self.client.candles(symbol, resolution, start, end)
        self.candles_cache[key] = data
        return data

    def search(self, query: str) -> List[Dict[str, Any]]:
        return [
            {
                "symbol": item.get("symbol"),
                "displaySymbol": item.get("displaySymbol"),
                "description": item.get("description"),
                "type": item.get("type"),
            }
            for item in self.client.search(query)
        ]

    def quote(self, symbol: str) -> Dict[str, Any]:
        return map_quote(self.client.quote(symbol))

    def profile(self, symbol: str) -> Dict[str, Any]:
        return self.client.profile(symbol)
