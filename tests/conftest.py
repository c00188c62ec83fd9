"""
tests/conftest.py
Pytest configuration and fixtures
"""

import warnings
import pytest

from tests import FakeClock, FakeFinnhubClient, FakeQuoteSource


def pytest_configure(config):
    """Configure pytest with custom settings"""
    # SQLite stores Numeric as float; SQLAlchemy warns about Decimal on every flush
    warnings.filterwarnings("ignore", message=".*does \\*not\\* support Decimal objects natively.*")
    config.addinivalue_line("filterwarnings", "ignore::ResourceWarning")
    config.addinivalue_line("filterwarnings", "ignore::DeprecationWarning")
    config.addinivalue_line(
        "filterwarnings", "ignore:.*does \\*not\\* support Decimal objects natively.*"
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def finnhub():
    return FakeFinnhubClient()


@pytest.fixture
def quotes():
    return FakeQuoteSource()
