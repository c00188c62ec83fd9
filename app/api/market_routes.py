"""
app/api/market_routes.py - Market data proxy: search, quotes, profiles, candles, news, FX
"""

import logging
import time
from typing import Tuple

from flask import Blueprint, Response, jsonify, request

from app.api.models import error_response, to_number
from app.api.validation import parse_int_param
from app.auth.decorators import require_login
from app.context import get_exchange_rates, get_market_data
from app.core.errors import ValidationError
from app.core.market_data import MarketDataError

logger = logging.getLogger(__name__)

market_bp = Blueprint("market", __name__)

DAY_SECONDS = 86400
DEFAULT_CANDLE_DAYS = 30


def _required_arg(name: str) -> str:
    value = (request.args.get(name) or "").strip()
    if not value:
        raise ValidationError([f'"{name}" is required'])
    return value


def _upstream_error(e: MarketDataError) -> Tuple[Response, int]:
    logger.warning(f"Market data request failed: {e}")
    return jsonify({"error": "market data unavailable", "details": [str(e)]}), 502


@market_bp.route("/stocks/search", methods=["GET"])
@require_login
def search() -> Tuple[Response, int]:
    """
    Search symbols by name or ticker
    ---
    tags:
      - market
    security:
      - Bearer: []
    parameters:
      - in: query
        name: q
        type: string
        required: true
    responses:
      200:
        description: Matching symbols
      400:
        description: Missing query
      502:
        description: Upstream provider failed
    """
    try:
        query = _required_arg("q")
        results = get_market_data().search(query)
        return jsonify({"count": len(results), "result": results}), 200
    except ValidationError as e:
        return error_response(e)
    except MarketDataError as e:
        return _upstream_error(e)


@market_bp.route("/stocks/quote", methods=["GET"])
@require_login
def quote() -> Tuple[Response, int]:
    """
    Full quote for a symbol
    ---
    tags:
      - market
    security:
      - Bearer: []
    parameters:
      - in: query
        name: symbol
        type: string
        required: true
    responses:
      200:
        description: currentPrice, change, percentChange, highPrice, lowPrice, openPrice, previousClose, timestamp
      400:
        description: Missing symbol
      502:
        description: Upstream provider failed
    """
    try:
        symbol = _required_arg("symbol").upper()
        return jsonify({"symbol": symbol, **get_market_data().quote(symbol)}), 200
    except ValidationError as e:
        return error_response(e)
    except MarketDataError as e:
        return _upstream_error(e)


@market_bp.route("/stocks/profile", methods=["GET"])
@require_login
def profile() -> Tuple[Response, int]:
    """
    Company profile for a symbol
    ---
    tags:
      - market
    security:
      - Bearer: []
    parameters:
      - in: query
        name: symbol
        type: string
        required: true
    responses:
      200:
        description: Company profile
      400:
        description: Missing symbol
      502:
        description: Upstream provider failed
    """
    try:
        symbol = _required_arg("symbol").upper()
        return jsonify(get_market_data().profile(symbol)), 200
    except ValidationError as e:
        return error_response(e)
    except MarketDataError as e:
        return _upstream_error(e)


@market_bp.route("/stocks/candles", methods=["GET"])
@require_login
def candles() -> Tuple[Response, int]:
    """
    Price candles, cached per request parameters
    ---
    tags:
      - market
    security:
      - Bearer: []
    parameters:
      - in: query
        name: symbol
        type: string
        required: true
      - in: query
        name: resolution
        type: string
        default: D
      - in: query
        name: from
        type: integer
        description: Unix seconds, default 30 days before `to`
      - in: query
        name: to
        type: integer
        description: Unix seconds, default start of the current day
    responses:
      200:
        description: Candle arrays
      400:
        description: Invalid parameters
      502:
        description: Upstream provider failed
    """
    try:
        symbol = _required_arg("symbol").upper()
        resolution = (request.args.get("resolution") or "D").strip()
        # Whole-day default keeps repeated requests on the same cache key
        default_end = int(time.time()) // DAY_SECONDS * DAY_SECONDS
        end = parse_int_param("to", request.args.get("to"), default_end)
        start = parse_int_param(
            "from", request.args.get("from"), end - DEFAULT_CANDLE_DAYS * DAY_SECONDS
        )
        if start >= end:
            raise ValidationError(['"from" must be before "to"'])

        data = get_market_data().candles(symbol, resolution, start, end)
        return jsonify({"symbol": symbol, "resolution": resolution, **data}), 200
    except ValidationError as e:
        return error_response(e)
    except MarketDataError as e:
        return _upstream_error(e)


@market_bp.route("/news", methods=["GET"])
def news() -> Tuple[Response, int]:
    """
    Market news feed, cached per category
    ---
    tags:
      - market
    parameters:
      - in: query
        name: category
        type: string
        default: general
    responses:
      200:
        description: News items
      502:
        description: Upstream provider failed
    """
    try:
        items = get_market_data().news(request.args.get("category") or "general")
        return jsonify(items), 200
    except MarketDataError as e:
        return _upstream_error(e)


@market_bp.route("/fx/rates", methods=["GET"])
def fx_rates() -> Tuple[Response, int]:
    """
    USD, CAD and EUR rates against USD
    ---
    tags:
      - market
    responses:
      200:
        description: Rates and whether they are live or the static fallback
    """
    rates, source = get_exchange_rates().rates_with_source()
    return (
        jsonify(
            {
                "base": "USD",
                "rates": {code: to_number(rate) for code, rate in rates.items()},
                "source": source,
            }
        ),
        200,
    )
