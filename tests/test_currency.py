"""
tests/test_currency.py
Test cases for exchange rates and USD conversion
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from app.core.currency import FALLBACK_RATES, ExchangeRateService, convert, extract_core_rates


def rates_session(payload=None, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value.json.return_value = payload
    return session


LIVE_PAYLOAD = {"base": "USD", "rates": {"USD": 1, "CAD": 1.37, "EUR": 0.92, "GBP": 0.79}}


def test_extract_core_rates() -> None:
    assert extract_core_rates(LIVE_PAYLOAD) == {
        "USD": Decimal("1"),
        "CAD": Decimal("1.37"),
        "EUR": Decimal("0.92"),
    }


def test_extract_core_rates_requires_cad_and_eur() -> None:
    with pytest.raises(ValueError):
        extract_core_rates({"rates": {"USD": 1, "CAD": 1.3}})


def test_convert() -> None:
    assert convert(Decimal("100"), "usd", FALLBACK_RATES) == Decimal("100")
    assert convert(Decimal("100"), "CAD", FALLBACK_RATES) == Decimal("140.0")
    assert convert(Decimal("50"), "EUR", FALLBACK_RATES) == Decimal("43.00")
    with pytest.raises(ValueError):
        convert(Decimal("1"), "JPY", FALLBACK_RATES)


class TestExchangeRateService:
    def test_no_app_id_uses_fallback(self) -> None:
        session = rates_session(LIVE_PAYLOAD)
        service = ExchangeRateService(None, session=session)
        assert service.rates_with_source() == (FALLBACK_RATES, "fallback")
        session.get.assert_not_called()

    def test_live_rates_are_cached(self, clock) -> None:
        session = rates_session(LIVE_PAYLOAD)
        service = ExchangeRateService("app-id", ttl=3600, session=session, clock=clock)

        rates, source = service.rates_with_source()
        assert source == "live"
        assert rates["CAD"] == Decimal("1.37")

        clock.advance(3599)
        service.rates()
        assert session.get.call_count == 1

        clock.advance(2)
        service.rates()
        assert session.get.call_count == 2
        assert session.get.call_args.kwargs["params"] == {"app_id": "app-id"}

    def test_request_failure_falls_back(self) -> None:
        session = rates_session(error=requests.ConnectionError("offline"))
        service = ExchangeRateService("app-id", session=session)
        assert service.rates_with_source() == (FALLBACK_RATES, "fallback")

    def test_incomplete_payload_falls_back(self) -> None:
        session = rates_session({"rates": {"USD": 1}})
        service = ExchangeRateService("app-id", session=session)
        assert service.rates() == FALLBACK_RATES
