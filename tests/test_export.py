"""
tests/test_export.py
Test cases for CSV export of a valuation
"""

import csv
import io
from datetime import datetime, timezone
from decimal import Decimal

from app.core.currency import FALLBACK_RATES
from app.core.export import CSV_COLUMNS, valuation_frame, valuation_to_csv
from app.core.ledger import HoldingValuation, Valuation, summarize

ADDED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def sample_valuation() -> Valuation:
    holdings = [
        HoldingValuation(
            symbol="AAPL",
            quantity=Decimal("15"),
            buy_price=Decimal("150"),
            current_price=Decimal("120"),
            gain=Decimal("-30.00"),
            gain_percent=Decimal("-20.00"),
            added_at=ADDED,
        ),
        HoldingValuation(
            symbol="GIFT",
            quantity=Decimal("2"),
            buy_price=Decimal("0"),
            current_price=Decimal("10.555"),
            gain=Decimal("10.56"),
            gain_percent=None,
            added_at=None,
        ),
    ]
    return Valuation(username="testuser", totals=summarize(holdings), holdings=holdings)


def read_rows(text):
    return list(csv.DictReader(io.StringIO(text)))


def test_csv_header_and_rows() -> None:
    text = valuation_to_csv(sample_valuation())
    assert text.splitlines()[0] == ",".join(CSV_COLUMNS)

    rows = read_rows(text)
    assert [row["symbol"] for row in rows] == ["AAPL", "GIFT"]
    aapl = rows[0]
    assert float(aapl["quantity"]) == 15
    assert float(aapl["value"]) == 1800
    assert float(aapl["gain"]) == -30
    assert float(aapl["gainPercent"]) == -20
    assert aapl["addedAt"] == ADDED.isoformat()


def test_value_is_rounded_to_cents() -> None:
    rows = read_rows(valuation_to_csv(sample_valuation()))
    assert float(rows[1]["value"]) == 21.11


def test_missing_gain_percent_is_empty() -> None:
    rows = read_rows(valuation_to_csv(sample_valuation()))
    assert rows[1]["gainPercent"] == ""
    assert rows[1]["addedAt"] == ""


def test_money_columns_converted() -> None:
    frame = valuation_frame(sample_valuation(), "CAD", FALLBACK_RATES)
    aapl = frame.iloc[0]
    assert aapl["buyPrice"] == 210.0
    assert aapl["currentPrice"] == 168.0
    assert aapl["value"] == 2520.0
    assert aapl["gain"] == -42.0
    # Quantities and percentages are currency-free
    assert aapl["quantity"] == 15.0
    assert aapl["gainPercent"] == -20.0


def test_empty_valuation_has_header_only() -> None:
    empty = Valuation(username="x", totals=summarize([]), holdings=[])
    assert valuation_to_csv(empty).strip() == ",".join(CSV_COLUMNS)
