"""
trade_breakdown/result_extractor.py
-----------------------------------
Turns a ledger into the caller-facing allocation mapping.
"""

from __future__ import annotations

from typing import Dict

from trade_breakdown.allocation_ledger import AllocationLedger
from trade_breakdown.models import Trade

Allocation = Dict[int, Dict[int, Trade]]


def extract_allocation(ledger: AllocationLedger) -> Allocation:
    """
    Return ``{client_id: {trade_id: Trade(trade_id, allocated, price)}}``.

    Every client appears, in ledger order; trades the client holds zero of
    are omitted, so a client that requested nothing maps to ``{}``.
    """
    allocation: Allocation = {}
    for client in ledger.clients:
        fills: Dict[int, Trade] = {}
        for trade_id, quantity in client.allocations.items():
            if quantity == 0:
                continue
            fills[trade_id] = Trade(trade_id, quantity, ledger.trades[trade_id].price)
        allocation[client.client_id] = fills
    return allocation
