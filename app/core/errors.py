"""
app/core/errors.py - Error types raised by the ledger and its collaborators
"""

from decimal import Decimal
from typing import List, Optional


class LedgerError(Exception):
    """Base class for portfolio ledger failures"""

    status_code = 500

    def to_dict(self) -> dict:
        return {"error": str(self)}


class NotFoundError(LedgerError):
    """Portfolio, holding or user does not exist"""

    status_code = 404


class InvalidQuantityError(LedgerError):
    """Quantity is not positive, or a sell exceeds the held amount"""

    status_code = 400

    def __init__(self, message: str, holding_quantity: Optional[Decimal] = None):
        super().__init__(message)
        self.holding_quantity = holding_quantity

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.holding_quantity is not None:
            payload["holdingQuantity"] = float(self.holding_quantity)
        return payload


class QuoteUnavailableError(LedgerError):
    """Quote source failed or returned a non-finite / non-positive price"""

    status_code = 503

    def __init__(self, symbol: str, reason: str = "price unavailable"):
        super().__init__(f"{reason}: {symbol}")
        self.symbol = symbol
        self.reason = reason


class ConcurrentTradeError(LedgerError):
    """Portfolio changed underneath this request; the caller may retry"""

    status_code = 409


class ValidationError(Exception):
    """Malformed request input, rejected before it reaches the ledger"""

    status_code = 400

    def __init__(self, details: List[str]):
        super().__init__("; ".join(details))
        self.details = details

    def to_dict(self) -> dict:
        return {"error": "validation error", "details": self.details}
