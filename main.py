#!/usr/bin/env python3
"""
main.py - Main application entry point
"""

import os
import sys
import logging
import threading
import schedule
import time
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Add project root to Python path
project_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, project_root)

from app import create_app
from config.settings import get_config, Config


def setup_logging():
    """Setup application logging"""
    os.makedirs("logs", exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler("logs/openfx.log", mode="a"),
        ],
    )

    return logging.getLogger(__name__)


def initialize_database():
    """Create the schema, default roles and the bootstrap admin"""
    logger = logging.getLogger(__name__)

    try:
        from app.db import init_db_manager
        from app.auth.init import initialize_admin_on_startup

        db_manager = init_db_manager(get_config().DATABASE_URL())

        session = db_manager.get_session()
        try:
            initialize_admin_on_startup(session)
        finally:
            session.close()

        logger.info("Database initialized successfully")
        return True

    except Exception as e:
        logger.error(f"Database initialization error: {e}")
        return False


def refresh_all_prices():
    """Revalue every stored portfolio"""
    logger = logging.getLogger(__name__)

    try:
        from app.core.ledger import PortfolioLedger
        from app.core.quotes import build_quote_source
        from app.core.store import AccountStore
        from app.db import get_db_manager

        config = get_config()
        session = get_db_manager().get_session()
        try:
            ledger = PortfolioLedger(
                AccountStore(session),
                build_quote_source(config),
                failure_policy=config.QUOTE_FAILURE_POLICY(),
            )
            refreshed = ledger.revalue_all()
            logger.info(f"Scheduled price refresh completed: {refreshed} portfolio(s)")
        finally:
            session.close()

    except Exception as e:
        logger.error(f"Scheduled price refresh failed: {e}")


def run_scheduled_tasks():
    """Run scheduled background tasks"""
    schedule.every(Config.PRICE_REFRESH_INTERVAL()).minutes.do(refresh_all_prices)

    while True:
        schedule.run_pending()
        time.sleep(60)


def start_scheduler():
    """Start background scheduler"""
    logger = logging.getLogger(__name__)

    try:
        logger.info("Starting background scheduler")
        scheduler_thread = threading.Thread(target=run_scheduled_tasks, daemon=True)
        scheduler_thread.start()
        logger.info(
            f"Background scheduler started, refreshing every {Config.PRICE_REFRESH_INTERVAL()} minutes"
        )

    except Exception as e:
        logger.error(f"Failed to start scheduler: {e}")


def check_environment():
    """Check directories and configuration"""
    logger = logging.getLogger(__name__)

    try:
        for directory in ["data", "logs"]:
            os.makedirs(directory, exist_ok=True)

        config_issues = get_config().validate_config()
        if config_issues:
            logger.warning("Configuration issues found:")
            for issue in config_issues:
                logger.warning(f"  - {issue}")

        logger.info("Environment check passed")
        return True

    except Exception as e:
        logger.error(f"Environment check failed: {e}")
        return False


def print_startup_info():
    """Print startup information"""
    logger = logging.getLogger(__name__)
    config = get_config()

    startup_info = f"""
{'=' * 60}
>> OpenFX Portfolio Service Starting
{'=' * 60}
Configuration: {config.__name__}
Database: {config.DATABASE_URL()}
Quote Provider: {config.QUOTE_PROVIDER()} (on failure: {config.QUOTE_FAILURE_POLICY()})
Refresh Interval: {config.PRICE_REFRESH_INTERVAL()} minutes
Host: {config.API_HOST()}:{config.API_PORT()}
{'=' * 60}
    """

    print(startup_info)
    logger.info("OpenFX startup initiated")


def main():
    """Main application function"""
    logger = setup_logging()

    try:
        print_startup_info()

        if not check_environment():
            logger.error("Environment check failed, aborting startup")
            return 1

        if not initialize_database():
            logger.error("Database initialization failed, aborting startup")
            return 1

        app = create_app()

        start_scheduler()

        config = get_config()
        if os.getenv("FLASK_ENV") == "development":
            # Debug server stays on localhost
            dev_host = "127.0.0.1"
            logger.info(f"Starting Flask development server on {dev_host}:{config.API_PORT()}")
            app.run(
                host=dev_host,
                port=config.API_PORT(),
                debug=True,
                use_reloader=False,  # Reloader would start a second scheduler
            )
        else:
            logger.info(f"Starting Flask application on {config.API_HOST()}:{config.API_PORT()}")
            app.run(host=config.API_HOST(), port=config.API_PORT(), debug=False)

        return 0

    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
        return 0

    except Exception as e:
        logger.error(f"Application startup failed: {e}")
        return 1


def create_wsgi_app():
    """Create WSGI application for a production server"""
    logger = setup_logging()

    if not check_environment():
        raise RuntimeError("Environment check failed")

    if not initialize_database():
        raise RuntimeError("Database initialization failed")

    app = create_app()
    start_scheduler()

    logger.info("WSGI application created successfully")
    return app


if __name__ == "__main__":
    sys.exit(main())
