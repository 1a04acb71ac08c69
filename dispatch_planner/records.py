from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Tuple

# Order line statuses
FULFILLED = "Fulfilled"
PARTIALLY_FULFILLED = "Partially Fulfilled"
PENDING = "Pending"

ORDER_STATUSES: Tuple[str, ...] = (FULFILLED, PARTIALLY_FULFILLED, PENDING)

# Pending reasons
REASON_UNKNOWN_SIZE = "Unknown size: no matching stock entry"
REASON_PARTIAL = "Stock ran out after partial allocation"
REASON_ZERO_STOCK = "Stock is zero for this size"


class ValidationError(ValueError):
    """Raised when a stock or order record violates a structural invariant.

    Attributes
    ----------
    record_kind : str
        "stock" or "order".
    index : int
        Position of the offending record in the sequence it came from.
    field : str
        Name of the offending field.
    """

    def __init__(self, record_kind: str, index: int, field: str, message: str):
        self.record_kind = record_kind
        self.index = index
        self.field = field
        super().__init__(f"{record_kind} record #{index}: field '{field}' {message}")


@dataclass(frozen=True)
class StockRecord:
    """On-hand quantity for one product size."""

    size: str
    quantity: int
    cbm: float = 0.0
    product: str = ""
    tag: str = ""  # e.g. "motor bag"


@dataclass(frozen=True)
class OrderLine:
    """One pending customer order for one size."""

    serial_number: int
    date: date
    customer: str
    size: str
    ordered_quantity: int
    cbm: float = 0.0
    sales_person: str = ""
    location: str = ""
    notes: str = ""


@dataclass(frozen=True)
class DispatchLine:
    serial_number: int
    date: date
    customer: str
    size: str
    ordered_quantity: int
    stock_before: int
    dispatched_quantity: int
    stock_after: int
    status: str
    notes: str = ""

    @property
    def pending_quantity(self) -> int:
        return self.ordered_quantity - self.dispatched_quantity


@dataclass(frozen=True)
class PendingEntry:
    serial_number: int
    customer: str
    size: str
    pending_quantity: int
    reason: str
    date: date | None = None


@dataclass(frozen=True)
class AllocationResult:
    """
    Output of one allocation run.

    Owned by the caller after return; nothing in here aliases the input
    collections.
    """

    total_stock_cbm: float = 0.0
    dispatch_lines: Tuple[DispatchLine, ...] = ()
    remaining_stock_by_size: Dict[str, int] = field(default_factory=dict)
    zero_stock_sizes: Tuple[str, ...] = ()
    pending_entries: Tuple[PendingEntry, ...] = ()
    # Sizes that were ordered but never appeared in the stock snapshot
    unknown_sizes: Tuple[str, ...] = ()

    @property
    def total_dispatched(self) -> int:
        return sum(line.dispatched_quantity for line in self.dispatch_lines)

    @property
    def total_pending(self) -> int:
        return sum(p.pending_quantity for p in self.pending_entries)

    @property
    def pending_quantity_by_size(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for p in self.pending_entries:
            out[p.size] = out.get(p.size, 0) + p.pending_quantity
        return out
