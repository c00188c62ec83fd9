"""
BDD Test Environment Setup and Teardown

Each scenario runs against its own temporary SQLite database and a Flask
app wired to an in-memory quote source, so no scenario touches the network.
"""

import os
import sys
import logging
import tempfile
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests import TEST_JWT_SECRET, FakeClock, FakeFinnhubClient, FakeQuoteSource  # noqa: E402


def before_all(context):
    """Setup logging once for the whole run"""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    context.logger = logging.getLogger("bdd.tests")
    context.logger.info("BDD test suite starting...")
    context.project_root = project_root


def before_scenario(context, scenario):
    """Fresh database, app and quote source for each scenario"""
    from app import create_app
    from app.auth.init import ensure_roles_exist
    from app.core.currency import ExchangeRateService
    from app.core.market_data import MarketDataService
    from app.db import init_db_manager
    from config.settings import TestingConfig

    context.logger.info(f"Running scenario: {scenario.name}")

    handle = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    handle.close()
    context.db_path = handle.name

    os.environ["FLASK_ENV"] = "testing"
    os.environ["JWT_SECRET"] = TEST_JWT_SECRET
    os.environ["DATABASE_URL"] = f"sqlite:///{context.db_path}"

    context.db_manager = init_db_manager(os.environ["DATABASE_URL"])
    with context.db_manager.session_context() as session:
        ensure_roles_exist(session)

    context.quotes = FakeQuoteSource()
    context.app = create_app(
        TestingConfig,
        quote_source=context.quotes,
        market_data=MarketDataService(FakeFinnhubClient(), clock=FakeClock()),
        exchange_rates=ExchangeRateService(None),
    )
    context.client = context.app.test_client()
    context.tokens = {}
    context.response = None


def after_scenario(context, scenario):
    """Dispose of the scenario database"""
    from app.db import reset_db_manager

    status = "PASSED" if scenario.status == "passed" else "FAILED"
    context.logger.info(f"Scenario '{scenario.name}' {status}")

    reset_db_manager()
    if os.path.exists(context.db_path):
        os.unlink(context.db_path)


def after_all(context):
    context.logger.info("BDD test suite completed")
