from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

import pandas as pd

from dispatch_planner.records import ORDER_STATUSES, AllocationResult

log = logging.getLogger("report_frames")

DISPATCH_PLAN_COLUMNS = [
    "SR NO",
    "Date",
    "Customer",
    "Size",
    "Ordered Quantity",
    "Stock Before Allocation",
    "Dispatched Quantity",
    "Remaining Stock",
    "Order Status",
    "Notes",
]
UPDATED_STOCK_COLUMNS = ["SIZE", "Stock Before Allocation", "Remaining Quantity"]
PENDING_ORDERS_COLUMNS = ["SR NO", "Date", "Customer", "Size", "Pending Quantity", "Reason"]
ZERO_STOCK_COLUMNS = ["SIZE"]

SUPPORTED_FORMATS = ("csv", "json")


def _iso(d) -> Optional[str]:
    return d.isoformat() if d is not None else None


def dispatch_plan_frame(result: AllocationResult) -> pd.DataFrame:
    rows = [
        [
            line.serial_number,
            _iso(line.date),
            line.customer,
            line.size,
            line.ordered_quantity,
            line.stock_before,
            line.dispatched_quantity,
            line.stock_after,
            line.status,
            line.notes,
        ]
        for line in result.dispatch_lines
    ]
    return pd.DataFrame(rows, columns=DISPATCH_PLAN_COLUMNS)


def updated_stock_frame(result: AllocationResult) -> pd.DataFrame:
    """
    Remaining quantity per stock size next to the quantity it started with.

    Starting stock is recovered from the result itself (remaining + everything
    dispatched for that size), so this only needs the AllocationResult.
    """
    dispatched: Dict[str, int] = {}
    for line in result.dispatch_lines:
        dispatched[line.size] = dispatched.get(line.size, 0) + line.dispatched_quantity

    rows = [
        [size, remaining + dispatched.get(size, 0), remaining]
        for size, remaining in result.remaining_stock_by_size.items()
    ]
    return pd.DataFrame(rows, columns=UPDATED_STOCK_COLUMNS)


def pending_orders_frame(result: AllocationResult) -> pd.DataFrame:
    rows = [
        [p.serial_number, _iso(p.date), p.customer, p.size, p.pending_quantity, p.reason]
        for p in result.pending_entries
    ]
    return pd.DataFrame(rows, columns=PENDING_ORDERS_COLUMNS)


def zero_stock_frame(result: AllocationResult) -> pd.DataFrame:
    return pd.DataFrame({"SIZE": list(result.zero_stock_sizes)}, columns=ZERO_STOCK_COLUMNS)


def status_counts(result: AllocationResult) -> pd.Series:
    """Number of dispatch lines per order status (every status present, 0 if unused)."""
    counts = pd.Series(0, index=list(ORDER_STATUSES), dtype="int64")
    for line in result.dispatch_lines:
        counts[line.status] += 1
    counts.name = "lines"
    return counts


def summary_dict(result: AllocationResult) -> Dict[str, object]:
    return {
        "total_stock_cbm": float(result.total_stock_cbm),
        "order_lines": len(result.dispatch_lines),
        "total_dispatched": int(result.total_dispatched),
        "total_pending": int(result.total_pending),
        "status_counts": {k: int(v) for k, v in status_counts(result).items()},
        "zero_stock_sizes": list(result.zero_stock_sizes),
        "unknown_sizes": list(result.unknown_sizes),
    }


def save_report(
    result: AllocationResult,
    out_dir: Path,
    formats: Iterable[str] = ("csv",),
) -> Dict[str, Path]:
    """
    Write every report table plus a summary.json into `out_dir`.

    Returns a mapping of artifact name -> written path.
    """
    if isinstance(formats, str):
        formats = [formats]
    formats = tuple(formats)
    for fmt in formats:
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported report format: {fmt}")

    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    frames = {
        "dispatch_plan": dispatch_plan_frame(result),
        "updated_stock": updated_stock_frame(result),
        "pending_orders": pending_orders_frame(result),
        "zero_stock_sizes": zero_stock_frame(result),
    }

    written: Dict[str, Path] = {}
    for name, df in frames.items():
        if "csv" in formats:
            path = out_dir / f"{name}.csv"
            df.to_csv(path, index=False)
            written[f"{name}.csv"] = path
        if "json" in formats:
            path = out_dir / f"{name}.json"
            df.to_json(path, orient="records", indent=2)
            written[f"{name}.json"] = path

    summary_path = out_dir / "summary.json"
    with open(summary_path, "w", encoding="utf-8") as f:
        json.dump(summary_dict(result), f, indent=2)
    written["summary.json"] = summary_path

    log.info("Saved %d report artifacts to %s", len(written), out_dir)
    return written
