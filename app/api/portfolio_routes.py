"""
app/api/portfolio_routes.py - Portfolio valuation, trading and export endpoints
"""

import logging
from typing import Tuple, Union

from flask import Blueprint, Response, jsonify, request

from app.api.models import (
    error_response,
    serialize_portfolio,
    serialize_valuation,
    to_number,
)
from app.api.validation import parse_trade
from app.auth.decorators import current_identity, require_login
from app.context import get_exchange_rates, get_ledger
from app.core.currency import SUPPORTED_CURRENCIES
from app.core.errors import LedgerError, ValidationError
from app.core.export import valuation_to_csv

logger = logging.getLogger(__name__)

portfolio_bp = Blueprint("portfolio", __name__, url_prefix="/portfolio")


@portfolio_bp.route("/all", methods=["GET", "POST"])
@require_login
def portfolio_all() -> Tuple[Response, int]:
    """
    Refresh prices and return the caller's holdings with totals
    ---
    tags:
      - portfolio
    security:
      - Bearer: []
    responses:
      200:
        description: Revalued portfolio
        schema:
          type: object
          properties:
            username:
              type: string
            totals:
              type: object
              properties:
                totalInvested:
                  type: number
                totalCurrent:
                  type: number
                pnl:
                  type: number
                pnlPercent:
                  type: number
                  x-nullable: true
            holdings:
              type: array
              items:
                type: object
                properties:
                  symbol:
                    type: string
                  quantity:
                    type: number
                  buyPrice:
                    type: number
                  currentPrice:
                    type: number
                  gain:
                    type: number
                  gainPercent:
                    type: number
                    x-nullable: true
                  addedAt:
                    type: string
      401:
        description: Missing or invalid credentials
      404:
        description: Portfolio not found
    """
    try:
        valuation = get_ledger().revalue(current_identity().username)
        return jsonify(serialize_valuation(valuation)), 200
    except LedgerError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error valuing portfolio: {e}")
        return jsonify({"error": "Failed to load portfolio"}), 500


@portfolio_bp.route("/buy", methods=["POST"])
@require_login
def buy() -> Tuple[Response, int]:
    """
    Buy at the current market price
    ---
    tags:
      - portfolio
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [symbol, quantity]
          properties:
            symbol:
              type: string
            quantity:
              type: number
    responses:
      200:
        description: Trade settled
      400:
        description: Validation error
      404:
        description: Portfolio not found
      409:
        description: Portfolio changed by a concurrent request
      503:
        description: Quote unavailable
    """
    try:
        symbol, quantity = parse_trade(request.get_json(silent=True))
        result = get_ledger().buy(current_identity().username, symbol, quantity)
        return (
            jsonify(
                {
                    "ok": True,
                    "action": "buy",
                    "symbol": symbol,
                    "quantity": to_number(quantity),
                    "tradePrice": to_number(result.trade_price),
                    "portfolio": serialize_portfolio(result.portfolio),
                }
            ),
            200,
        )
    except (ValidationError, LedgerError) as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error buying: {e}")
        return jsonify({"error": "Trade failed"}), 500


@portfolio_bp.route("/sell", methods=["POST"])
@require_login
def sell() -> Tuple[Response, int]:
    """
    Sell at the current market price
    ---
    tags:
      - portfolio
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [symbol, quantity]
          properties:
            symbol:
              type: string
            quantity:
              type: number
    responses:
      200:
        description: Trade settled, with realizedPnl
      400:
        description: Validation error, or quantity exceeds holding (holdingQuantity included)
      404:
        description: Portfolio or holding not found
      409:
        description: Portfolio changed by a concurrent request
      503:
        description: Quote unavailable
    """
    try:
        symbol, quantity = parse_trade(request.get_json(silent=True))
        result = get_ledger().sell(current_identity().username, symbol, quantity)
        return (
            jsonify(
                {
                    "ok": True,
                    "action": "sell",
                    "symbol": symbol,
                    "quantity": to_number(quantity),
                    "tradePrice": to_number(result.trade_price),
                    "realizedPnl": to_number(result.realized_pnl),
                    "portfolio": serialize_portfolio(result.portfolio),
                }
            ),
            200,
        )
    except (ValidationError, LedgerError) as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error selling: {e}")
        return jsonify({"error": "Trade failed"}), 500


@portfolio_bp.route("/export", methods=["GET"])
@require_login
def export() -> Union[Response, Tuple[Response, int]]:
    """
    Download revalued holdings as CSV
    ---
    tags:
      - portfolio
    security:
      - Bearer: []
    parameters:
      - in: query
        name: currency
        type: string
        enum: ['USD', 'CAD', 'EUR']
        default: USD
    produces:
      - text/csv
    responses:
      200:
        description: CSV file
      400:
        description: Unsupported currency
    """
    try:
        currency = (request.args.get("currency") or "USD").upper()
        if currency not in SUPPORTED_CURRENCIES:
            raise ValidationError([f'"currency" must be one of {", ".join(SUPPORTED_CURRENCIES)}'])

        username = current_identity().username
        valuation = get_ledger().revalue(username)
        rates = get_exchange_rates().rates() if currency != "USD" else None
        csv_text = valuation_to_csv(valuation, currency, rates)

        return Response(
            csv_text,
            mimetype="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename=portfolio-{username}-{currency}.csv"
            },
        )
    except (ValidationError, LedgerError) as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error exporting portfolio: {e}")
        return jsonify({"error": "Export failed"}), 500
