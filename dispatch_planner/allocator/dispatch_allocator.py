from __future__ import annotations

import logging
import math
import numbers
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence

from dispatch_planner.records import (
    FULFILLED,
    PARTIALLY_FULFILLED,
    PENDING,
    REASON_PARTIAL,
    REASON_UNKNOWN_SIZE,
    REASON_ZERO_STOCK,
    AllocationResult,
    DispatchLine,
    OrderLine,
    PendingEntry,
    StockRecord,
    ValidationError,
)
from .allocator_config import AllocatorConfig


# ----------------------------------------------------------------------
# Record validation
# ----------------------------------------------------------------------


def _is_int(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _is_non_negative_real(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(float(value)) and value >= 0


def _is_non_empty_str(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_stock_records(stock: Sequence[StockRecord]) -> None:
    """Raise ValidationError on the first stock record that is malformed."""
    for i, rec in enumerate(stock):
        if not _is_non_empty_str(rec.size):
            raise ValidationError("stock", i, "size", "must be a non-empty string")
        if not _is_int(rec.quantity):
            raise ValidationError("stock", i, "quantity", "must be an integer")
        if rec.quantity < 0:
            raise ValidationError("stock", i, "quantity", "must be >= 0")
        if not _is_non_negative_real(rec.cbm):
            raise ValidationError("stock", i, "cbm", "must be a non-negative number")


def validate_order_lines(orders: Sequence[OrderLine]) -> None:
    """Raise ValidationError on the first order line that is malformed."""
    for i, line in enumerate(orders):
        if not _is_int(line.serial_number):
            raise ValidationError("order", i, "serial_number", "must be an integer")
        if not isinstance(line.date, date):
            raise ValidationError("order", i, "date", "must be a date")
        if not _is_non_empty_str(line.customer):
            raise ValidationError("order", i, "customer", "must be a non-empty string")
        if not _is_non_empty_str(line.size):
            raise ValidationError("order", i, "size", "must be a non-empty string")
        if not _is_int(line.ordered_quantity):
            raise ValidationError("order", i, "ordered_quantity", "must be an integer")
        if line.ordered_quantity < 1:
            raise ValidationError("order", i, "ordered_quantity", "must be >= 1")
        if not _is_non_negative_real(line.cbm):
            raise ValidationError("order", i, "cbm", "must be a non-negative number")


def _calendar_day(d: date) -> date:
    # datetimes (and pandas Timestamps) only sort by their calendar day
    return d.date() if isinstance(d, datetime) else d


def prioritize_orders(orders: Sequence[OrderLine]) -> List[OrderLine]:
    """
    Return orders in fulfilment priority: earliest date first, then lowest
    serial number. Python's sort is stable, so equal keys keep input order.
    """
    return sorted(orders, key=lambda o: (_calendar_day(o.date), o.serial_number))


# ----------------------------------------------------------------------
# Allocator
# ----------------------------------------------------------------------


class DispatchAllocator:
    """
    Deterministic first-come-first-served allocator of on-hand stock to
    pending order lines.

      - seeds a working stock map per size from the snapshot
      - walks orders by (date, serial number)
      - dispatches as much of each line as the remaining stock of its size allows
      - records every decision as a DispatchLine, and unmet demand as a PendingEntry

    The allocator holds no state between calls; it never mutates its inputs.
    """

    def __init__(self, config: Optional[AllocatorConfig] = None):
        self.config = config or AllocatorConfig()
        self.log = logging.getLogger(self.__class__.__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def allocate(
        self,
        stock: Sequence[StockRecord],
        orders: Sequence[OrderLine],
    ) -> AllocationResult:
        """Main entry point: compute a dispatch plan for `orders` from `stock`.

        Raises ValidationError (before doing any allocation) if any record is
        malformed.
        """
        validate_stock_records(stock)
        validate_order_lines(orders)

        # 1) Working stock map and reporting total
        remaining = self._seed_remaining(stock)
        total_cbm = float(sum(float(rec.cbm) for rec in stock))

        # 2) Prioritize
        prioritized = prioritize_orders(orders)

        # 3) Walk orders; later lines see the depletion caused by earlier ones
        dispatch_lines: List[DispatchLine] = []
        pending: List[PendingEntry] = []
        unknown: Dict[str, None] = {}

        for order in prioritized:
            line = self._allocate_line(order, remaining)
            dispatch_lines.append(line)
            if line.status == PENDING and order.size not in remaining:
                unknown.setdefault(order.size, None)
            if line.status != FULFILLED:
                pending.append(
                    PendingEntry(
                        serial_number=order.serial_number,
                        customer=order.customer,
                        size=order.size,
                        pending_quantity=line.pending_quantity,
                        reason=line.notes,
                        date=order.date,
                    )
                )

        zero_sizes = tuple(size for size, qty in remaining.items() if qty == 0)

        result = AllocationResult(
            total_stock_cbm=total_cbm,
            dispatch_lines=tuple(dispatch_lines),
            remaining_stock_by_size=dict(remaining),
            zero_stock_sizes=zero_sizes,
            pending_entries=tuple(pending),
            unknown_sizes=tuple(unknown),
        )

        self.log.info(
            "Allocated %d order lines over %d sizes: dispatched=%d pending_lines=%d "
            "pending_qty=%d zero_stock_sizes=%d unknown_sizes=%d",
            len(dispatch_lines),
            len(remaining),
            result.total_dispatched,
            len(pending),
            result.total_pending,
            len(zero_sizes),
            len(unknown),
        )
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _seed_remaining(self, stock: Sequence[StockRecord]) -> Dict[str, int]:
        remaining: Dict[str, int] = {}
        first_seen: Dict[str, int] = {}
        for i, rec in enumerate(stock):
            if rec.size in remaining:
                if self.config.duplicate_sizes == "reject":
                    raise ValidationError(
                        "stock",
                        i,
                        "size",
                        f"duplicates size {rec.size!r} (first seen at #{first_seen[rec.size]})",
                    )
                self.log.warning(
                    "Duplicate stock size %r at #%d; summing quantities", rec.size, i
                )
                remaining[rec.size] += int(rec.quantity)
            else:
                remaining[rec.size] = int(rec.quantity)
                first_seen[rec.size] = i
        return remaining

    def _allocate_line(self, order: OrderLine, remaining: Dict[str, int]) -> DispatchLine:
        qty = int(order.ordered_quantity)

        if order.size not in remaining:
            stock_before, dispatched, status, notes = 0, 0, PENDING, REASON_UNKNOWN_SIZE
        else:
            stock_before = remaining[order.size]
            if stock_before >= qty:
                dispatched, status, notes = qty, FULFILLED, order.notes
            elif stock_before > 0:
                dispatched, status, notes = stock_before, PARTIALLY_FULFILLED, REASON_PARTIAL
            else:
                dispatched, status, notes = 0, PENDING, REASON_ZERO_STOCK
            remaining[order.size] = stock_before - dispatched

        self.log.debug(
            "SR %s (%s, %s): size=%s ordered=%d before=%d dispatched=%d -> %s",
            order.serial_number,
            order.date,
            order.customer,
            order.size,
            qty,
            stock_before,
            dispatched,
            status,
        )

        return DispatchLine(
            serial_number=order.serial_number,
            date=order.date,
            customer=order.customer,
            size=order.size,
            ordered_quantity=qty,
            stock_before=stock_before,
            dispatched_quantity=dispatched,
            stock_after=stock_before - dispatched,
            status=status,
            notes=notes,
        )


def allocate(
    stock: Sequence[StockRecord],
    orders: Sequence[OrderLine],
    config: Optional[AllocatorConfig] = None,
) -> AllocationResult:
    """Convenience wrapper around DispatchAllocator(config).allocate()."""
    return DispatchAllocator(config).allocate(stock, orders)
