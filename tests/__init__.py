"""
tests/__init__.py
Test package initialization with fixtures, fakes, and sample data
"""

import os
import sys
import tempfile
import unittest
from decimal import Decimal
from typing import Any, Dict, List

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from app.core.errors import QuoteUnavailableError
from app.core.market_data import MarketDataError
from app.core.quotes import QuoteSource

TEST_JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"


# ============================================================================
# FAKE COLLABORATORS
# ============================================================================


class FakeQuoteSource(QuoteSource):
    """Quote source answering from a dict

    A missing symbol, or a value that is an exception instance, fails the
    quote. Every requested symbol is recorded in ``calls``.
    """

    def __init__(self, prices: Dict[str, Any] = None):
        self.prices: Dict[str, Any] = dict(prices or {})
        self.calls: List[str] = []

    def get_quote(self, symbol: str) -> Any:
        self.calls.append(symbol)
        value = self.prices.get(symbol)
        if value is None:
            raise QuoteUnavailableError(symbol)
        if isinstance(value, Exception):
            raise value
        return value


class FakeFinnhubClient:
    """Stands in for FinnhubClient with canned payloads and call counting"""

    def __init__(self):
        self.calls: List[tuple] = []
        self.fail = False

    def _record(self, *call: Any) -> None:
        self.calls.append(call)
        if self.fail:
            raise MarketDataError("upstream unavailable")

    def quote(self, symbol: str) -> Dict[str, Any]:
        self._record("quote", symbol)
        return {"c": 187.5, "d": 1.25, "dp": 0.67, "h": 188.0, "l": 185.1, "o": 186.0, "pc": 186.25, "t": 1700000000}

    def search(self, query: str) -> List[Dict[str, Any]]:
        self._record("search", query)
        return [
            {"symbol": "AAPL", "displaySymbol": "AAPL", "description": "APPLE INC", "type": "Common Stock"},
        ]

    def profile(self, symbol: str) -> Dict[str, Any]:
        self._record("profile", symbol)
        return {"ticker": symbol, "name": "Apple Inc", "currency": "USD"}

    def news(self, category: str) -> List[Dict[str, Any]]:
        self._record("news", category)
        return [{"headline": f"{category} headline", "source": "Wire", "url": "https://example.com/a"}]

    def candles(self, symbol: str, resolution: str, start: int, end: int) -> Dict[str, Any]:
        self._record("candles", symbol, resolution, start, end)
        return {"s": "ok", "c": [1.0, 2.0], "t": [start, end]}


class FakeClock:
    """Monotonic clock advanced by hand"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ============================================================================
# BASE TEST CASE
# ============================================================================


class BaseTestCase(unittest.TestCase):
    """Base test case on a temporary SQLite file

    Provides a regular user (testuser / TestPass123), an admin
    (adminuser / AdminPass123), a fake quote source and a Flask app wired
    to fakes so no test touches the network.
    """

    TEST_PASSWORD = "TestPass123"
    ADMIN_PASSWORD = "AdminPass123"

    def setUp(self):
        """Set up test fixtures"""
        self.test_db = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
        self.test_db.close()
        self.test_db_path = self.test_db.name
        self.database_url = f"sqlite:///{self.test_db.name}"

        # Set test environment
        self._saved_env = {
            key: os.environ.get(key)
            for key in ("FLASK_ENV", "DATABASE_URL", "JWT_SECRET", "ALLOW_REGISTRATION")
        }
        os.environ["FLASK_ENV"] = "testing"
        os.environ["DATABASE_URL"] = self.database_url
        os.environ["JWT_SECRET"] = TEST_JWT_SECRET
        os.environ.pop("ALLOW_REGISTRATION", None)

        from app.db import init_db_manager
        from app.auth import AuthService
        from app.auth.init import ensure_roles_exist
        from app.models import RoleEnum

        self.db_manager = init_db_manager(self.database_url)

        session = self.db_manager.get_session()
        try:
            ensure_roles_exist(session)
            AuthService.register_user(
                session, "testuser", "test@example.com", "Test User", self.TEST_PASSWORD
            )
            AuthService.register_user(
                session,
                "adminuser",
                "admin@example.com",
                "Admin User",
                self.ADMIN_PASSWORD,
                roles=(RoleEnum.ADMIN.value, RoleEnum.USER.value),
            )
        finally:
            session.close()

        from app import create_app
        from app.core.currency import ExchangeRateService
        from app.core.market_data import MarketDataService
        from config.settings import TestingConfig

        self.quotes = FakeQuoteSource({"AAPL": Decimal("100"), "MSFT": Decimal("300")})
        self.finnhub = FakeFinnhubClient()
        self.clock = FakeClock()
        self.market_data = MarketDataService(self.finnhub, news_ttl=300, candles_ttl=300, clock=self.clock)
        self.exchange_rates = ExchangeRateService(None)

        self.app = create_app(
            TestingConfig,
            quote_source=self.quotes,
            market_data=self.market_data,
            exchange_rates=self.exchange_rates,
        )
        self.client = self.app.test_client()

    def tearDown(self):
        """Clean up test fixtures"""
        from app.db import reset_db_manager

        reset_db_manager()

        for key, value in self._saved_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value

        if os.path.exists(self.test_db.name):
            os.unlink(self.test_db.name)

    def get_auth_headers(self, username: str = "testuser") -> Dict[str, str]:
        """Headers with a Bearer JWT for ``username``"""
        from app.auth import AuthService
        from app.core.store import AccountStore

        with self.app.app_context():
            session = self.db_manager.get_session()
            try:
                user = AccountStore(session).find_user_by_username(username)
                token = AuthService.create_access_token(user)
            finally:
                session.close()
        return {"Authorization": f"Bearer {token}"}

    def get_admin_headers(self) -> Dict[str, str]:
        return self.get_auth_headers("adminuser")

    def new_ledger(self, session, **kwargs):
        """Ledger over ``session`` using the fake quote source"""
        from app.core.ledger import PortfolioLedger
        from app.core.store import AccountStore

        return PortfolioLedger(AccountStore(session), self.quotes, **kwargs)


def run_all_tests():
    """Run all tests in the test suite"""
    loader = unittest.TestLoader()
    suite = loader.discover("tests", pattern="test_*.py")

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
