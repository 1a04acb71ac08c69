from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import numpy as np
import pandas as pd

from dispatch_planner.allocator.dispatch_allocator import (
    validate_order_lines,
    validate_stock_records,
)
from dispatch_planner.records import OrderLine, StockRecord

COVERAGE_COLUMNS = ["on_hand", "demand", "shortfall", "coverage"]


@dataclass(frozen=True)
class InventorySummary:
    total_cbm: float
    total_quantity: int
    size_count: int
    zero_stock_sizes: Tuple[str, ...]


def _quantity_by_size(stock: Sequence[StockRecord]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for rec in stock:
        out[rec.size] = out.get(rec.size, 0) + int(rec.quantity)
    return out


def summarize_inventory(stock: Sequence[StockRecord]) -> InventorySummary:
    """
    Snapshot-level figures: total CBM, total units, and sizes that are
    already at zero before any allocation. Repeated sizes are summed.
    """
    validate_stock_records(stock)
    by_size = _quantity_by_size(stock)
    return InventorySummary(
        total_cbm=float(sum(float(rec.cbm) for rec in stock)),
        total_quantity=int(sum(by_size.values())),
        size_count=len(by_size),
        zero_stock_sizes=tuple(s for s, q in by_size.items() if q == 0),
    )


def demand_coverage(
    stock: Sequence[StockRecord],
    orders: Sequence[OrderLine],
) -> pd.DataFrame:
    """
    Compare on-hand stock against total pending demand per size.

    Returns
    -------
    DataFrame indexed by size with columns:
        on_hand   : summed stock quantity (0 for sizes only seen in orders)
        demand    : summed ordered quantity
        shortfall : max(demand - on_hand, 0)
        coverage  : on_hand / demand, NaN where there is no demand
    Rows are sorted by shortfall (largest first), then size.
    """
    validate_stock_records(stock)
    validate_order_lines(orders)

    on_hand = pd.Series(_quantity_by_size(stock), dtype="int64")
    demand_map: Dict[str, int] = {}
    for line in orders:
        demand_map[line.size] = demand_map.get(line.size, 0) + int(line.ordered_quantity)
    demand = pd.Series(demand_map, dtype="int64")

    sizes = on_hand.index.union(demand.index)
    df = pd.DataFrame(
        {
            "on_hand": on_hand.reindex(sizes, fill_value=0),
            "demand": demand.reindex(sizes, fill_value=0),
        },
        index=sizes,
    ).astype("int64")
    df["shortfall"] = (df["demand"] - df["on_hand"]).clip(lower=0)

    demand_f = df["demand"].to_numpy(dtype=float)
    on_hand_f = df["on_hand"].to_numpy(dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        df["coverage"] = np.where(demand_f > 0, on_hand_f / demand_f, np.nan)

    df.index.name = "size"
    df = df.reset_index().sort_values(
        ["shortfall", "size"], ascending=[False, True], kind="mergesort"
    )
    return df.set_index("size")[COVERAGE_COLUMNS]
