"""
trade_breakdown/models.py
-------------------------
Plain input/output records.

Callers may pass either these records or bare values (an ``int`` quantity per
client, a ``(quantity, price)`` tuple per trade); :func:`coerce_client_orders`
and :func:`coerce_trades` turn both forms into fresh records so a run never
mutates what it was given.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Mapping, Tuple, Union

from trade_breakdown.exceptions import InvalidInputError


@dataclass
class Trade:
    """One completed execution.  Also used for per-client output fills."""
    trade_id: int
    quantity: int
    price: float


@dataclass
class ClientOrder:
    """A client's request for a share of the executed pool."""
    client_id: int
    requested_quantity: int


ClientOrderInput = Union[ClientOrder, int]
TradeInput = Union[Trade, Tuple[int, float]]


def coerce_client_orders(client_orders: Mapping[int, ClientOrderInput]) -> Dict[int, ClientOrder]:
    """Return a new ``{client_id: ClientOrder}`` dict in input order."""
    orders: Dict[int, ClientOrder] = {}
    for key, value in client_orders.items():
        if isinstance(value, ClientOrder):
            orders[key] = replace(value)
        elif isinstance(value, int) and not isinstance(value, bool):
            orders[key] = ClientOrder(key, value)
        else:
            raise InvalidInputError(
                f"Client {key!r}: expected a ClientOrder or an int quantity, "
                f"got {type(value).__name__}."
            )
    return orders


def coerce_trades(trades: Mapping[int, TradeInput]) -> Dict[int, Trade]:
    """Return a new ``{trade_id: Trade}`` dict in input order."""
    records: Dict[int, Trade] = {}
    for key, value in trades.items():
        if isinstance(value, Trade):
            records[key] = replace(value)
            continue
        try:
            quantity, price = value
        except (TypeError, ValueError):
            raise InvalidInputError(
                f"Trade {key!r}: expected a Trade or a (quantity, price) pair."
            ) from None
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            raise InvalidInputError(
                f"Trade {key!r}: quantity must be an int (got {quantity!r})."
            )
        try:
            price = float(price)
        except (TypeError, ValueError):
            raise InvalidInputError(
                f"Trade {key!r}: price must be a number (got {price!r})."
            ) from None
        records[key] = Trade(key, quantity, price)
    return records
