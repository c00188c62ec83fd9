"""
app/api/models.py - JSON shapes for API responses

Field names follow the camelCase contract the web client already consumes.
Decimals are emitted as JSON numbers.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from flask import Response, jsonify

from app.core.ledger import HoldingValuation, PortfolioTotals, Valuation
from app.models import Holding, Portfolio, User


def to_number(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_holding_valuation(holding: HoldingValuation) -> dict:
    return {
        "symbol": holding.symbol,
        "quantity": to_number(holding.quantity),
        "buyPrice": to_number(holding.buy_price),
        "currentPrice": to_number(holding.current_price),
        "gain": to_number(holding.gain),
        "gainPercent": to_number(holding.gain_percent),
        "addedAt": to_iso(holding.added_at),
    }


def serialize_totals(totals: PortfolioTotals) -> dict:
    return {
        "totalInvested": to_number(totals.total_invested),
        "totalCurrent": to_number(totals.total_current),
        "pnl": to_number(totals.pnl),
        "pnlPercent": to_number(totals.pnl_percent),
    }


def serialize_valuation(valuation: Valuation) -> dict:
    return {
        "username": valuation.username,
        "totals": serialize_totals(valuation.totals),
        "holdings": [serialize_holding_valuation(h) for h in valuation.holdings],
    }


def serialize_holding(holding: Holding) -> dict:
    """Stored holding, without gain figures"""
    return {
        "symbol": holding.symbol,
        "quantity": to_number(holding.quantity),
        "buyPrice": to_number(holding.buy_price),
        "currentPrice": to_number(holding.current_price),
        "addedAt": to_iso(holding.added_at),
    }


def serialize_portfolio(portfolio: Portfolio) -> dict:
    return {
        "userUsername": portfolio.user_username,
        "holdings": [serialize_holding(h) for h in portfolio.holdings],
        "createdAt": to_iso(portfolio.created_at),
        "updatedAt": to_iso(portfolio.updated_at),
    }


def serialize_user(user: User) -> dict:
    return {
        "email": user.email,
        "fullname": user.fullname,
        "username": user.username,
        "roles": user.role_names,
        "createdAt": to_iso(user.created_at),
        "updatedAt": to_iso(user.updated_at),
    }


def error_response(error: Any) -> tuple[Response, int]:
    """JSON body and status for a LedgerError or ValidationError"""
    return jsonify(error.to_dict()), error.status_code
