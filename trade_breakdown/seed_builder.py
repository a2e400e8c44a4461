"""
trade_breakdown/seed_builder.py
-------------------------------
Builds the initial feasible allocation that annealing starts from.

Two passes, both in input order:

1. **Proportional**: every client gets ``floor(trade.quantity × target %)``
   of every trade.  The target percentage is held as an exact
   ``Fraction(requested, total)`` so the floor is exact.
2. **Leftover**: each client still short walks the trades and takes
   ``min(shortfall, remaining)`` until its request is met.

Because total requested equals total traded (checked by the validator), the
leftover pass always completes every client without over-distributing any
trade.
"""

from __future__ import annotations

import logging
import math
from fractions import Fraction
from typing import Mapping, Tuple

from trade_breakdown.allocation_ledger import AllocationLedger, ClientLedger, TradeBalance
from trade_breakdown.exceptions import InvariantViolationError
from trade_breakdown.models import ClientOrder, Trade

logger = logging.getLogger(__name__)


def pool_statistics(trades: Mapping[int, Trade]) -> Tuple[int, float]:
    """
    Return ``(total_quantity, benchmark_price)`` for *trades*.

    The benchmark is the volume-weighted average price, evaluated exactly and
    rounded once.  ``0.0`` for an empty pool.
    """
    total_quantity = 0
    notional = Fraction(0)
    for trade in trades.values():
        total_quantity += trade.quantity
        notional += trade.quantity * Fraction(trade.price)

    if total_quantity == 0:
        return 0, 0.0
    return total_quantity, float(notional / total_quantity)


def build_seed_ledger(
    client_orders: Mapping[int, ClientOrder],
    trades: Mapping[int, Trade],
) -> AllocationLedger:
    """
    Create the ledger for *client_orders* over *trades* and fill it with the
    proportional + leftover seed.

    Raises
    ------
    InvariantViolationError
        If a client cannot be completed, which means the totals did not
        match and the inputs were not validated.
    """
    total_quantity, benchmark_price = pool_statistics(trades)

    clients = [
        ClientLedger(
            order.client_id,
            order.requested_quantity,
            Fraction(order.requested_quantity, total_quantity) if total_quantity else Fraction(0),
        )
        for order in client_orders.values()
    ]
    balances = [TradeBalance(t.trade_id, t.quantity, t.price) for t in trades.values()]
    ledger = AllocationLedger(clients, balances, benchmark_price)

    # --- Proportional pass ---------------------------------------------
    for balance in balances:
        for client in clients:
            if not total_quantity:
                break
            share = math.floor(balance.quantity * client.target_percentage)
            ledger.add_allocation(client, balance.trade_id, min(share, balance.quantity))

    # --- Leftover pass ---------------------------------------------------
    for client in clients:
        if client.shortfall == 0:
            continue

        for balance in balances:
            if balance.remaining == 0:
                continue
            ledger.add_allocation(client, balance.trade_id, min(client.shortfall, balance.remaining))
            if client.shortfall == 0:
                break

        if client.shortfall != 0:
            raise InvariantViolationError(
                f"Client {client.client_id!r} is still short {client.shortfall} "
                "after the leftover pass."
            )

    logger.debug(
        f"Seeded {len(clients)} clients over {len(balances)} trades, "
        f"benchmark={benchmark_price:.6f}, slippage={ledger.slippage():.6f}"
    )
    return ledger
