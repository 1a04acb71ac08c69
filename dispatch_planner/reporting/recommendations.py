from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pandas as pd

from dispatch_planner.records import REASON_UNKNOWN_SIZE, AllocationResult


def _join(items: Sequence[str]) -> str:
    return ", ".join(items)


def recommend_actions(
    result: AllocationResult,
    coverage: Optional[pd.DataFrame] = None,
) -> List[str]:
    """
    Build recommended actions from the facts in an AllocationResult.

    Only restates what the allocation already decided; quantities always come
    from `result`, never from here.

    Parameters
    ----------
    result:
        Output of DispatchAllocator.allocate().
    coverage:
        Optional demand_coverage() frame. When given, sizes that are fully
        covered now but would be left at zero stock are flagged for restocking.
    """
    actions: List[str] = []

    # --- Production / procurement for sizes with unmet demand ----------
    unknown = set(result.unknown_sizes)
    shortage: Dict[str, int] = {
        size: qty
        for size, qty in result.pending_quantity_by_size.items()
        if size not in unknown
    }
    if shortage:
        ordered = sorted(shortage.items(), key=lambda kv: (-kv[1], kv[0]))
        actions.append(
            "Urgent production/procurement required for sizes: "
            + _join([f"{size} ({qty} units pending)" for size, qty in ordered])
        )

    # --- Restock sizes depleted by this plan ---------------------------
    if coverage is not None and not coverage.empty:
        depleted = [
            size
            for size in result.zero_stock_sizes
            if size not in shortage
            and size in coverage.index
            and coverage.loc[size, "demand"] > 0
        ]
        if depleted:
            actions.append(
                "Replenish sizes emptied by this dispatch plan: " + _join(sorted(depleted))
            )

    # --- Follow up on unknown sizes ------------------------------------
    if result.unknown_sizes:
        serials = [
            str(p.serial_number)
            for p in result.pending_entries
            if p.reason == REASON_UNKNOWN_SIZE
        ]
        actions.append(
            "Follow up on orders for sizes missing from stock data: "
            f"{_join(list(result.unknown_sizes))} (SR NO {_join(serials)})"
        )

    # --- Customer communication ----------------------------------------
    by_customer: Dict[str, List[str]] = {}
    for p in result.pending_entries:
        by_customer.setdefault(p.customer, []).append(str(p.serial_number))
    for customer in sorted(by_customer):
        actions.append(
            f"Inform {customer} about pending order status (SR NO {_join(by_customer[customer])})"
        )

    if not actions:
        actions.append("All orders can be fulfilled from current stock; no action required.")
    return actions


def format_recommendations(actions: Sequence[str]) -> str:
    return "\n".join(f"- {a}" for a in actions)
