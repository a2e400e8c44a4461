"""
trade_breakdown/allocation_ledger.py
------------------------------------
Mutable allocation state for one candidate breakdown.

Layout
------
* :class:`TradeBalance`: one per trade, shared by every client holding a
  piece of it: total quantity, cumulative ``allocated`` and ``remaining``.
  All balances live in a single ``{trade_id: TradeBalance}`` ledger owned by
  the :class:`AllocationLedger`.
* :class:`ClientLedger`: one per client: requested quantity, target
  percentage, running total, average price, and ``allocations``
  (``{trade_id: quantity}``).  A client refers to a balance only by id.

Mutation
--------
:meth:`AllocationLedger.add_allocation` and
:meth:`AllocationLedger.remove_allocation` are the only write paths; swaps
and their rollbacks are built from them, so every move costs O(1).

Each client's notional is kept as an exact :class:`fractions.Fraction`.
Adding a delta and then removing it therefore restores the notional, and the
average price derived from it, bit for bit.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Dict, Iterable, List, Optional

from trade_breakdown.exceptions import (
    InvariantViolationError,
    MissingAllocationError,
    OverAllocationError,
)


class TradeBalance:
    """Allocation state of one trade across all clients."""

    __slots__ = ("trade_id", "quantity", "price", "exact_price", "allocated", "remaining")

    def __init__(self, trade_id: int, quantity: int, price: float, exact_price: Optional[Fraction] = None):
        self.trade_id = trade_id
        self.quantity = quantity
        self.price = price
        self.exact_price = Fraction(price) if exact_price is None else exact_price
        self.allocated = 0
        self.remaining = quantity

    def copy(self) -> "TradeBalance":
        clone = TradeBalance(self.trade_id, self.quantity, self.price, self.exact_price)
        clone.allocated = self.allocated
        clone.remaining = self.remaining
        return clone

    def __repr__(self) -> str:
        return (
            f"TradeBalance(trade_id={self.trade_id!r}, quantity={self.quantity}, "
            f"allocated={self.allocated}, remaining={self.remaining})"
        )


class ClientLedger:
    """Per-client holdings and running average price."""

    __slots__ = (
        "client_id", "requested_quantity", "target_percentage",
        "total_allocated", "notional", "average_price", "allocations",
    )

    def __init__(self, client_id: int, requested_quantity: int, target_percentage: Fraction):
        self.client_id = client_id
        self.requested_quantity = requested_quantity
        self.target_percentage = target_percentage
        self.total_allocated = 0
        self.notional = Fraction(0)
        self.average_price = 0.0
        self.allocations: Dict[int, int] = {}

    def holding(self, trade_id: int) -> int:
        """Quantity of *trade_id* this client holds (0 when not held)."""
        return self.allocations.get(trade_id, 0)

    @property
    def shortfall(self) -> int:
        return self.requested_quantity - self.total_allocated

    def copy(self) -> "ClientLedger":
        clone = ClientLedger(self.client_id, self.requested_quantity, self.target_percentage)
        clone.total_allocated = self.total_allocated
        clone.notional = self.notional
        clone.average_price = self.average_price
        clone.allocations = dict(self.allocations)
        return clone

    def __repr__(self) -> str:
        return (
            f"ClientLedger(client_id={self.client_id!r}, "
            f"allocated={self.total_allocated}/{self.requested_quantity}, "
            f"average_price={self.average_price})"
        )


class AllocationLedger:
    """
    The full set of client ledgers plus the trade balance ledger.

    A ledger produced by :meth:`snapshot` is frozen: it is an output-only
    copy, and any attempt to mutate it raises
    :class:`InvariantViolationError`.
    """

    def __init__(
        self,
        clients: Iterable[ClientLedger],
        trades: Iterable[TradeBalance],
        benchmark_price: float,
    ):
        self.clients: List[ClientLedger] = list(clients)
        self.trades: Dict[int, TradeBalance] = {t.trade_id: t for t in trades}
        self.trade_ids: List[int] = list(self.trades)
        self.benchmark_price = benchmark_price
        self.frozen = False

    # ------------------------------------------------------------------ #
    #  Primitive mutations
    # ------------------------------------------------------------------ #

    def add_allocation(self, client: ClientLedger, trade_id: int, amount: int) -> None:
        """
        Give *amount* of *trade_id* to *client*.

        Registers the trade with the client on first use, even for a zero
        amount.

        Raises
        ------
        OverAllocationError
            If the client's total would exceed its requested quantity.
        InvariantViolationError
            If the trade's remaining quantity would go negative, the amount is
            negative, or the ledger is frozen.
        """
        self._check_writable()
        if amount < 0:
            raise InvariantViolationError(
                f"Cannot add a negative amount ({amount}) of trade {trade_id!r} "
                f"to client {client.client_id!r}."
            )

        balance = self.trades[trade_id]
        if client.total_allocated + amount > client.requested_quantity:
            raise OverAllocationError(
                f"Client {client.client_id!r} would hold "
                f"{client.total_allocated + amount} but requested "
                f"{client.requested_quantity}."
            )
        if balance.remaining - amount < 0:
            raise InvariantViolationError(
                f"Trade {trade_id!r} would be over-distributed: "
                f"{balance.remaining} left, {amount} asked by client "
                f"{client.client_id!r}."
            )

        if trade_id not in client.allocations:
            client.allocations[trade_id] = 0
        self._apply(client, balance, amount)

    def remove_allocation(self, client: ClientLedger, trade_id: int, amount: int) -> None:
        """
        Take *amount* of *trade_id* back from *client* (inverse of
        :meth:`add_allocation`).

        Raises
        ------
        MissingAllocationError
            If the client does not hold the trade.
        InvariantViolationError
            If more than the held quantity would be removed, the amount is
            negative, or the ledger is frozen.
        """
        self._check_writable()
        if trade_id not in client.allocations:
            raise MissingAllocationError(
                f"Client {client.client_id!r} does not hold trade {trade_id!r}."
            )
        if amount < 0:
            raise InvariantViolationError(
                f"Cannot remove a negative amount ({amount}) of trade {trade_id!r} "
                f"from client {client.client_id!r}."
            )
        held = client.allocations[trade_id]
        if amount > held:
            raise InvariantViolationError(
                f"Client {client.client_id!r} holds {held} of trade {trade_id!r}, "
                f"cannot remove {amount}."
            )

        self._apply(client, self.trades[trade_id], -amount)

    def _apply(self, client: ClientLedger, balance: TradeBalance, delta: int) -> None:
        balance.allocated += delta
        balance.remaining -= delta

        client.allocations[balance.trade_id] += delta
        client.total_allocated += delta

        if client.total_allocated > 0:
            client.notional += delta * balance.exact_price
            client.average_price = float(client.notional / client.total_allocated)
        else:
            client.notional = Fraction(0)
            client.average_price = 0.0

    def _check_writable(self) -> None:
        if self.frozen:
            raise InvariantViolationError("Snapshot ledgers are read-only.")

    # ------------------------------------------------------------------ #
    #  Swaps
    # ------------------------------------------------------------------ #

    def swap(self, client1: ClientLedger, trade1: int, client2: ClientLedger, trade2: int, amount: int) -> None:
        """Exchange *amount* of *trade1* held by *client1* for *trade2* held by *client2*."""
        self.remove_allocation(client1, trade1, amount)
        self.remove_allocation(client2, trade2, amount)
        self.add_allocation(client1, trade2, amount)
        self.add_allocation(client2, trade1, amount)

    def undo_swap(self, client1: ClientLedger, trade1: int, client2: ClientLedger, trade2: int, amount: int) -> None:
        """Exact inverse of :meth:`swap` called with the same arguments."""
        self.remove_allocation(client2, trade1, amount)
        self.remove_allocation(client1, trade2, amount)
        self.add_allocation(client2, trade2, amount)
        self.add_allocation(client1, trade1, amount)

    # ------------------------------------------------------------------ #
    #  Evaluation
    # ------------------------------------------------------------------ #

    def slippage(self) -> float:
        """
        Σ |client average price − benchmark price| over every client.

        A client holding nothing has an average price of 0, so it contributes
        the full benchmark price.
        """
        benchmark = self.benchmark_price
        return sum(
            (abs(client.average_price - benchmark) for client in self.clients),
            0.0,
        )

    # ------------------------------------------------------------------ #
    #  Copies and checks
    # ------------------------------------------------------------------ #

    def snapshot(self) -> "AllocationLedger":
        """Frozen deep copy of clients and trade balances."""
        clone = AllocationLedger(
            (client.copy() for client in self.clients),
            (balance.copy() for balance in self.trades.values()),
            self.benchmark_price,
        )
        clone.frozen = True
        return clone

    def verify_conservation(self) -> None:
        """
        Full O(clients × trades) check of the ledger invariants.

        Raises
        ------
        InvariantViolationError
            If any client does not hold exactly its requested quantity, any
            trade is not fully distributed, or any holding is negative.
        """
        per_trade: Dict[int, int] = {trade_id: 0 for trade_id in self.trades}

        for client in self.clients:
            held = 0
            for trade_id, quantity in client.allocations.items():
                if quantity < 0:
                    raise InvariantViolationError(
                        f"Client {client.client_id!r} holds a negative quantity "
                        f"({quantity}) of trade {trade_id!r}."
                    )
                held += quantity
                per_trade[trade_id] += quantity
            if held != client.total_allocated or held != client.requested_quantity:
                raise InvariantViolationError(
                    f"Client {client.client_id!r} holds {held} "
                    f"(running total {client.total_allocated}) but requested "
                    f"{client.requested_quantity}."
                )

        for trade_id, balance in self.trades.items():
            if per_trade[trade_id] != balance.quantity or balance.remaining != 0:
                raise InvariantViolationError(
                    f"Trade {trade_id!r} distributes {per_trade[trade_id]} of "
                    f"{balance.quantity} ({balance.remaining} remaining)."
                )

    def __len__(self) -> int:
        return len(self.clients)
