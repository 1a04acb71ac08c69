from datetime import date, timedelta

import numpy as np
import pytest

from dispatch_planner.allocator.dispatch_allocator import allocate
from dispatch_planner.records import (
    FULFILLED,
    PARTIALLY_FULFILLED,
    PENDING,
    OrderLine,
    StockRecord,
)

SIZES = ["600x200x100", "600x200x150", "600x200x200", "600x200x230", "600x250x100"]


def _random_book(seed: int):
    """Random stock snapshot + order book; one ordered size is never stocked."""
    rng = np.random.default_rng(seed)
    stock = [
        StockRecord(size=s, quantity=int(rng.integers(0, 60)), cbm=float(rng.uniform(0, 10)))
        for s in SIZES[:-1]
    ]
    start = date(2024, 1, 1)
    orders = [
        OrderLine(
            serial_number=int(rng.integers(1, 15)),
            date=start + timedelta(days=int(rng.integers(0, 6))),
            customer=f"C{int(rng.integers(0, 5))}",
            size=SIZES[int(rng.integers(0, len(SIZES)))],
            ordered_quantity=int(rng.integers(1, 30)),
        )
        for _ in range(40)
    ]
    return stock, orders


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_repeated_runs_are_identical(seed):
    stock, orders = _random_book(seed)
    assert allocate(stock, orders) == allocate(stock, orders)


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_stock_is_conserved_per_size(seed):
    stock, orders = _random_book(seed)
    result = allocate(stock, orders)

    for rec in stock:
        dispatched = sum(
            l.dispatched_quantity for l in result.dispatch_lines if l.size == rec.size
        )
        assert dispatched + result.remaining_stock_by_size[rec.size] == rec.quantity


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_lines_follow_date_then_serial_order(seed):
    stock, orders = _random_book(seed)
    result = allocate(stock, orders)

    keys = [(l.date, l.serial_number) for l in result.dispatch_lines]
    assert keys == sorted(keys)
    assert len(result.dispatch_lines) == len(orders)

    # Stability: among equal keys, input order is preserved
    position = {id(o): i for i, o in enumerate(orders)}
    expected = sorted(orders, key=lambda o: (o.date, o.serial_number, position[id(o)]))
    assert [(l.customer, l.size, l.ordered_quantity) for l in result.dispatch_lines] == [
        (o.customer, o.size, o.ordered_quantity) for o in expected
    ]


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_status_matches_dispatched_quantity(seed):
    stock, orders = _random_book(seed)
    result = allocate(stock, orders)

    for line in result.dispatch_lines:
        if line.status == FULFILLED:
            assert line.dispatched_quantity == line.ordered_quantity
        elif line.status == PARTIALLY_FULFILLED:
            assert 0 < line.dispatched_quantity < line.ordered_quantity
        else:
            assert line.status == PENDING
            assert line.dispatched_quantity == 0
        assert line.stock_after == line.stock_before - line.dispatched_quantity

    pending_serials = [p.serial_number for p in result.pending_entries]
    assert pending_serials == [
        l.serial_number for l in result.dispatch_lines if l.status != FULFILLED
    ]
    assert result.total_pending == sum(
        l.ordered_quantity - l.dispatched_quantity for l in result.dispatch_lines
    )


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_remaining_stock_never_negative(seed):
    stock, orders = _random_book(seed)
    result = allocate(stock, orders)

    assert all(q >= 0 for q in result.remaining_stock_by_size.values())
    assert all(l.stock_after >= 0 for l in result.dispatch_lines)
    assert set(result.zero_stock_sizes) == {
        s for s, q in result.remaining_stock_by_size.items() if q == 0
    }
    assert SIZES[-1] not in result.remaining_stock_by_size
