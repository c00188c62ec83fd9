"""
app/api/validation.py - Request payload checks done before the ledger runs
"""

from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple

from app.core.errors import ValidationError


def _positive_number(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite() or number <= 0:
        return None
    return number


def parse_trade(data: Any) -> Tuple[str, Decimal]:
    """Return (symbol, quantity) from a buy/sell body

    Raises:
        ValidationError listing every problem found
    """
    if not isinstance(data, dict):
        data = {}

    details: List[str] = []

    symbol = data.get("symbol")
    if not isinstance(symbol, str) or not symbol.strip():
        details.append('"symbol" is required')

    quantity = _positive_number(data.get("quantity"))
    if data.get("quantity") is None:
        details.append('"quantity" is required')
    elif quantity is None:
        details.append('"quantity" must be a positive number')

    if details:
        raise ValidationError(details)

    return symbol.strip().upper(), quantity  # type: ignore[union-attr,return-value]


def parse_holding(data: Any) -> Tuple[str, Decimal, Decimal]:
    """Return (symbol, quantity, buyPrice) from an admin holding body"""
    details: List[str] = []
    try:
        symbol, quantity = parse_trade(data)
    except ValidationError as e:
        details.extend(e.details)
        symbol, quantity = "", Decimal("0")

    buy_price = _positive_number((data or {}).get("buyPrice") if isinstance(data, dict) else None)
    if buy_price is None:
        details.append('"buyPrice" must be a positive number')

    if details:
        raise ValidationError(details)

    return symbol, quantity, buy_price  # type: ignore[return-value]


def parse_roles(data: Any) -> List[str]:
    roles = data.get("roles") if isinstance(data, dict) else None
    if not isinstance(roles, list) or not roles or not all(isinstance(r, str) for r in roles):
        raise ValidationError(['"roles" must be a non-empty list of role names'])
    return [r.strip().lower() for r in roles]


def parse_int_param(name: str, raw: Optional[str], default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError([f'"{name}" must be an integer'])
