"""
app/__init__.py
Flask application factory with Flasgger OpenAPI support
"""

from datetime import timedelta
from typing import Optional

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flasgger import Flasgger
import logging

from app.core.currency import ExchangeRateService
from app.core.market_data import FinnhubClient, MarketDataService
from app.core.quotes import QuoteSource, build_quote_source
from config.settings import Config, get_config


def build_market_data(config: type[Config]) -> MarketDataService:
    return MarketDataService(
        FinnhubClient(config.FINNHUB_API_KEY(), timeout=config.QUOTE_TIMEOUT()),
        news_ttl=config.NEWS_CACHE_TTL(),
        candles_ttl=config.CANDLES_CACHE_TTL(),
        max_entries=config.CACHE_MAX_ENTRIES(),
    )


def build_exchange_rates(config: type[Config]) -> ExchangeRateService:
    return ExchangeRateService(
        config.OPENEXCHANGERATES_API_KEY(),
        ttl=config.FX_CACHE_TTL(),
        timeout=config.QUOTE_TIMEOUT(),
    )


def create_app(
    config: Optional[type[Config]] = None,
    quote_source: Optional[QuoteSource] = None,
    market_data: Optional[MarketDataService] = None,
    exchange_rates: Optional[ExchangeRateService] = None,
) -> Flask:
    """
    Application factory pattern

    Creates and configures Flask app with:
    - CORS support
    - Flasgger for OpenAPI/Swagger at /api/docs
    - JWT authentication
    - API blueprints for routes

    Collaborators default to the configured live providers; tests pass
    their own. The database manager must be initialized by the caller.
    """
    config = config or get_config()
    app = Flask(__name__)

    # Enable CORS, restricted to one origin when configured
    cors_origin = config.CORS_ORIGIN()
    CORS(app, resources={r"/*": {"origins": cors_origin or "*"}})

    # Configure Flask
    app.config["JSON_SORT_KEYS"] = False
    app.config["TESTING"] = getattr(config, "TESTING", False)
    app.config["QUOTE_FAILURE_POLICY"] = config.QUOTE_FAILURE_POLICY()

    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Initialize JWT authentication
    app.config["JWT_SECRET_KEY"] = config.JWT_SECRET_KEY()
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(hours=config.JWT_EXPIRES_HOURS())
    JWTManager(app)

    swagger_config = {
        "headers": [],
        "specs": [
            {
                "endpoint": "apispec",
                "route": "/apispec.json",
                "rule_filter": lambda rule: True,
                "model_filter": lambda tag: True,
            }
        ],
        "static_url_path": "/flasgger_static",
        "swagger_ui": True,
        "specs_route": "/api/docs",
        "uiversion": 3,
        "info": {
            "title": "OpenFX Portfolio API",
            "version": "1.0.0",
            "description": (
                "Paper-trading portfolio service: buy and sell at live market "
                "prices, weighted-average cost basis, realized and unrealized P&L. "
                "Authenticate with a JWT from /users/login as a Bearer token."
            ),
        },
        "schemes": ["http", "https"],
        "securityDefinitions": {
            "Bearer": {
                "type": "apiKey",
                "name": "Authorization",
                "in": "header",
                "description": "Enter your token as: Bearer YOUR_JWT",
            }
        },
    }

    Flasgger(app, config=swagger_config)

    # Shared services and per-request database session
    from app.context import register_services

    register_services(
        app,
        quote_source=quote_source or build_quote_source(config),
        market_data=market_data or build_market_data(config),
        exchange_rates=exchange_rates or build_exchange_rates(config),
    )

    # Register API blueprints
    from app.api import all_blueprints

    for blueprint in all_blueprints():
        app.register_blueprint(blueprint)

    return app
