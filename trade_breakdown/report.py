"""
trade_breakdown/report.py
-------------------------
Tabular views of a finished allocation.

Pure functions over the ``{client_id: {trade_id: Trade}}`` mapping returned
by the engine; nothing here touches the optimizer.
"""

from __future__ import annotations

import pandas as pd

from trade_breakdown.result_extractor import Allocation

_FILL_COLUMNS = ["client_id", "trade_id", "quantity", "price", "notional"]


def allocation_frame(allocation: Allocation) -> pd.DataFrame:
    """
    One row per (client, trade) fill.

    Columns: ``client_id``, ``trade_id``, ``quantity``, ``price``,
    ``notional`` (quantity × price).
    """
    rows = [
        {
            "client_id": client_id,
            "trade_id":  fill.trade_id,
            "quantity":  fill.quantity,
            "price":     fill.price,
            "notional":  fill.quantity * fill.price,
        }
        for client_id, fills in allocation.items()
        for fill in fills.values()
    ]
    return pd.DataFrame(rows, columns=_FILL_COLUMNS)


def client_summary(allocation: Allocation) -> pd.DataFrame:
    """
    Per-client totals indexed by ``client_id``.

    Columns
    -------
    ``quantity``      : shares allocated
    ``notional``      : Σ quantity × price
    ``average_price`` : notional / quantity (NaN for an empty client)
    ``deviation``     : average_price − pool VWAP (NaN for an empty client)

    Clients with no fills are kept, with zero quantity and notional.
    """
    fills = allocation_frame(allocation)

    summary = (
        fills.groupby("client_id")[["quantity", "notional"]]
        .sum()
        .reindex(list(allocation), fill_value=0)
    )
    summary.index.name = "client_id"

    total_quantity = summary["quantity"].sum()
    benchmark = summary["notional"].sum() / total_quantity if total_quantity else float("nan")

    quantity = summary["quantity"].where(summary["quantity"] > 0)
    summary["average_price"] = summary["notional"] / quantity
    summary["deviation"] = summary["average_price"] - benchmark
    return summary
