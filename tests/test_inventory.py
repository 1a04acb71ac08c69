from datetime import date

import numpy as np
import pandas as pd
import pytest
from pandas.testing import assert_frame_equal

from dispatch_planner.inventory import demand_coverage, summarize_inventory
from dispatch_planner.records import OrderLine, StockRecord, ValidationError


def test_summarize_inventory_totals_and_zero_sizes():
    stock = [
        StockRecord(size="A", quantity=10, cbm=1.5),
        StockRecord(size="B", quantity=0, cbm=0.0),
        StockRecord(size="C", quantity=0, cbm=0.25),
        StockRecord(size="C", quantity=2, cbm=0.25),
    ]

    summary = summarize_inventory(stock)

    assert summary.total_cbm == pytest.approx(2.0)
    assert summary.total_quantity == 12
    assert summary.size_count == 3
    # C is only zero on one of its rows; summed it has stock
    assert summary.zero_stock_sizes == ("B",)


def test_summarize_inventory_empty():
    summary = summarize_inventory([])
    assert summary.total_cbm == 0.0
    assert summary.total_quantity == 0
    assert summary.zero_stock_sizes == ()


def test_summarize_inventory_validates_records():
    with pytest.raises(ValidationError):
        summarize_inventory([StockRecord(size="A", quantity=-1)])


def test_demand_coverage_table():
    stock = [
        StockRecord(size="A", quantity=10),
        StockRecord(size="B", quantity=4),
        StockRecord(size="D", quantity=7),
    ]
    orders = [
        OrderLine(1, date(2024, 1, 1), "X", "A", 6),
        OrderLine(2, date(2024, 1, 2), "Y", "B", 5),
        OrderLine(3, date(2024, 1, 2), "Y", "B", 3),
        OrderLine(4, date(2024, 1, 3), "Z", "C", 2),
    ]

    df = demand_coverage(stock, orders)

    expected = pd.DataFrame(
        {
            "on_hand": [4, 0, 10, 7],
            "demand": [8, 2, 6, 0],
            "shortfall": [4, 2, 0, 0],
            "coverage": [0.5, 0.0, 10 / 6, np.nan],
        },
        index=pd.Index(["B", "C", "A", "D"], name="size"),
    )
    expected[["on_hand", "demand", "shortfall"]] = expected[
        ["on_hand", "demand", "shortfall"]
    ].astype("int64")
    assert_frame_equal(df, expected)


def test_demand_coverage_empty_inputs():
    df = demand_coverage([], [])
    assert df.empty
    assert list(df.columns) == ["on_hand", "demand", "shortfall", "coverage"]
