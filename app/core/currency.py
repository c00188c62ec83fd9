"""
app/core/currency.py - USD/CAD/EUR conversion from OpenExchangeRates
"""

import logging
import time
from decimal import Decimal
from typing import Callable, Dict, Optional

import requests  # type: ignore
from cachetools import TTLCache

logger = logging.getLogger(__name__)

SUPPORTED_CURRENCIES = ("USD", "CAD", "EUR")

# Used whenever the live rates cannot be fetched
FALLBACK_RATES: Dict[str, Decimal] = {
    "USD": Decimal("1"),
    "CAD": Decimal("1.4"),
    "EUR": Decimal("0.86"),
}


def extract_core_rates(payload: dict) -> Dict[str, Decimal]:
    """Pick USD (the base), CAD and EUR out of a latest.json response"""
    rates = payload.get("rates") or {}
    usd = rates.get("USD") or 1
    cad = rates.get("CAD")
    eur = rates.get("EUR")
    if not cad or not eur:
        raise ValueError("CAD or EUR rate missing in response")
    return {"USD": Decimal(str(usd)), "CAD": Decimal(str(cad)), "EUR": Decimal(str(eur))}


def convert(amount: Decimal, currency: str, rates: Dict[str, Decimal]) -> Decimal:
    """Convert a USD amount into ``currency``"""
    currency = currency.upper()
    if currency == "USD":
        return amount
    if currency not in rates or not rates.get("USD"):
        raise ValueError(f"No rate for {currency}")
    return amount / rates["USD"] * rates[currency]


class ExchangeRateService:
    """Latest rates, cached for ``ttl`` seconds, with a static fallback"""

    URL = "https://openexchangerates.org/api/latest.json"

    def __init__(
        self,
        app_id: Optional[str],
        ttl: int = 3600,
        timeout: float = 8.0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.app_id = app_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.cache: TTLCache = TTLCache(maxsize=1, ttl=ttl, timer=clock)

    def rates(self) -> Dict[str, Decimal]:
        return self.rates_with_source()[0]

    def rates_with_source(self) -> tuple[Dict[str, Decimal], str]:
        """Returns (rates, "live" | "fallback")"""
        if "latest" in self.cache:
            return self.cache["latest"], "live"

        if not self.app_id:
            return dict(FALLBACK_RATES), "fallback"

        try:
            response = self.session.get(
                self.URL, params={"app_id": self.app_id}, timeout=self.timeout
            )
            response.raise_for_status()
            rates = extract_core_rates(response.json())
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Exchange rates unavailable, using fallback: {e}")
            return dict(FALLBACK_RATES), "fallback"

        self.cache["latest"] = rates
        return rates, "live"
