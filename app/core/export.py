"""
app/core/export.py - CSV export of a portfolio valuation
"""

from decimal import Decimal
from typing import Dict, Optional

import pandas as pd

from app.core.currency import convert
from app.core.ledger import Valuation, round2

CSV_COLUMNS = [
    "symbol",
    "quantity",
    "buyPrice",
    "currentPrice",
    "value",
    "gain",
    "gainPercent",
    "addedAt",
]


def valuation_frame(
    valuation: Valuation,
    currency: str = "USD",
    rates: Optional[Dict[str, Decimal]] = None,
) -> pd.DataFrame:
    """One row per holding; money columns converted when currency is not USD"""
    currency = currency.upper()

    def money(amount: Decimal) -> Decimal:
        if currency == "USD" or rates is None:
            return amount
        return convert(amount, currency, rates)

    rows = []
    for h in valuation.holdings:
        rows.append(
            {
                "symbol": h.symbol,
                "quantity": float(h.quantity),
                "buyPrice": float(money(h.buy_price)),
                "currentPrice": float(money(h.current_price)),
                "value": float(round2(money(h.value))),
                "gain": float(round2(money(h.gain))),
                "gainPercent": float(h.gain_percent) if h.gain_percent is not None else None,
                "addedAt": h.added_at.isoformat() if h.added_at else "",
            }
        )

    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def valuation_to_csv(
    valuation: Valuation,
    currency: str = "USD",
    rates: Optional[Dict[str, Decimal]] = None,
) -> str:
    frame = valuation_frame(valuation, currency, rates)
    return frame.to_csv(index=False, lineterminator="\n")
