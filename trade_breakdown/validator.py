"""
trade_breakdown/validator.py
----------------------------
Input consistency checks, run before any allocation work.

Every failure raises :class:`InvalidInputError` naming the offending id.
Nothing is modified.
"""

from __future__ import annotations

from typing import Mapping

from trade_breakdown.exceptions import InvalidInputError
from trade_breakdown.models import ClientOrder, Trade


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_inputs(
    client_orders: Mapping[int, ClientOrder],
    trades: Mapping[int, Trade],
    min_lot_size: int,
) -> None:
    """
    Check that *client_orders* and *trades* can be broken down in lots of
    *min_lot_size*.

    Raises
    ------
    InvalidInputError
        * lot size is not an integer ≥ 1
        * a trade's ``trade_id`` differs from its key
        * a trade quantity is not an int, or its price is not a number
        * a trade quantity is negative or not a multiple of the lot size
        * a client's ``client_id`` differs from its key
        * a requested quantity is not an int
        * a requested quantity is negative or not a multiple of the lot size
        * total requested ≠ total traded
    """
    if not _is_int(min_lot_size) or min_lot_size < 1:
        raise InvalidInputError(
            f"min_lot_size must be an integer >= 1 (got {min_lot_size!r})."
        )

    total_traded = 0
    for key, trade in trades.items():
        if key != trade.trade_id:
            raise InvalidInputError(
                f"Trade key {key!r} does not match trade_id {trade.trade_id!r}."
            )
        if not _is_int(trade.quantity):
            raise InvalidInputError(
                f"Trade {key!r}: quantity must be an int (got {trade.quantity!r})."
            )
        if not _is_number(trade.price):
            raise InvalidInputError(
                f"Trade {key!r}: price must be a number (got {trade.price!r})."
            )
        if trade.quantity < 0:
            raise InvalidInputError(
                f"Trade {key!r} has a negative quantity ({trade.quantity})."
            )
        if trade.quantity % min_lot_size != 0:
            raise InvalidInputError(
                f"Trade {key!r} quantity {trade.quantity} is not divisible "
                f"by min_lot_size {min_lot_size}."
            )
        total_traded += trade.quantity

    total_requested = 0
    for key, order in client_orders.items():
        if key != order.client_id:
            raise InvalidInputError(
                f"Client key {key!r} does not match client_id {order.client_id!r}."
            )
        if not _is_int(order.requested_quantity):
            raise InvalidInputError(
                f"Client {key!r}: requested quantity must be an int "
                f"(got {order.requested_quantity!r})."
            )
        if order.requested_quantity < 0:
            raise InvalidInputError(
                f"Client {key!r} requested a negative quantity "
                f"({order.requested_quantity})."
            )
        if order.requested_quantity % min_lot_size != 0:
            raise InvalidInputError(
                f"Client {key!r} requested quantity {order.requested_quantity} "
                f"is not divisible by min_lot_size {min_lot_size}."
            )
        total_requested += order.requested_quantity

    if total_requested != total_traded:
        raise InvalidInputError(
            f"Clients requested {total_requested} but trades sum to {total_traded}."
        )
