"""
trade_breakdown/lot_normalizer.py
---------------------------------
Moves quantities between share units and lot units.

The optimizer works in lots: fewer units means a smaller swap search space.
Inputs are divided by the lot size before seeding and the best ledger is
multiplied back afterwards.  Prices and average prices are unit-free and
left untouched.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Mapping, Tuple

from trade_breakdown.allocation_ledger import AllocationLedger
from trade_breakdown.models import ClientOrder, Trade


def scale_down(
    client_orders: Mapping[int, ClientOrder],
    trades: Mapping[int, Trade],
    lot_size: int,
) -> Tuple[Dict[int, ClientOrder], Dict[int, Trade]]:
    """
    Return copies of *client_orders* and *trades* expressed in lots.

    Quantities must already be exact multiples of *lot_size* (see
    :func:`trade_breakdown.validator.validate_inputs`).
    """
    orders = {
        key: replace(order, requested_quantity=order.requested_quantity // lot_size)
        for key, order in client_orders.items()
    }
    lots = {
        key: replace(trade, quantity=trade.quantity // lot_size)
        for key, trade in trades.items()
    }
    return orders, lots


def scale_up(ledger: AllocationLedger, lot_size: int) -> AllocationLedger:
    """
    Return a frozen copy of *ledger* with every quantity multiplied by
    *lot_size*.  *ledger* itself is not modified.
    """
    scaled = ledger.snapshot()
    if lot_size == 1:
        return scaled

    for client in scaled.clients:
        client.requested_quantity *= lot_size
        client.total_allocated *= lot_size
        client.notional *= lot_size
        for trade_id in client.allocations:
            client.allocations[trade_id] *= lot_size

    for balance in scaled.trades.values():
        balance.quantity *= lot_size
        balance.allocated *= lot_size
        balance.remaining *= lot_size

    return scaled
